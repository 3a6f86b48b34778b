"""Sync execution configuration for controlling a batch run."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from flowsync.core.config import Settings


class SourceColumns(BaseModel):
    """Names of the Airtable columns the orchestrator reads or writes."""

    name: str = "Nom affiché"
    slug: str = "Slug"
    foreign_id: str = "Webflow item ID"
    sync_state: str = "Status SYNC"
    partner: str = "Partenaire"
    categories: str = "Category Produit"
    sale_status: str = "Statut"
    main_image: str = "Image principale"
    gallery: str = "Images galerie"
    partner_company_name: str = "Nom Société"
    partner_name: str = "Nom"


class TargetSlugs(BaseModel):
    """Slugs of the Webflow product fields filled from resolved values."""

    name: str = "name"
    slug: str = "slug"
    partner: str = "partenaire"
    categories: str = "category-produit"
    main_image: str = "image-principale"
    gallery: str = "images-galerie"
    sale_status: str = "statut-vente-2"


class SyncExecutionConfig(BaseModel):
    """Declarative configuration of one batch run.

    Built from the application settings; each component reads only the values
    it needs.
    """

    products_table: str = "Gisement"
    partners_table: str = "Partenaires"
    products_collection_id: str = Field(..., description="Webflow collection for products")
    categories_collection_id: str = Field(..., description="Linked collection for categories")
    partners_collection_id: str = Field(..., description="Linked collection for partners")

    batch_size: int = Field(5, gt=0, description="Max records pulled per run")
    reference_lookup_limit: int = Field(100, gt=0, le=100)
    option_settle_delay: float = Field(2.0, ge=0)
    option_max_attempts: int = Field(3, gt=0)
    option_backoff_max: float = Field(10.0, ge=0)

    asset_base_url: Optional[str] = Field(
        None,
        description="Public base URL of this service; when set, image URLs are "
        "rewritten to go through the image proxy",
    )

    columns: SourceColumns = Field(default_factory=SourceColumns)
    slugs: TargetSlugs = Field(default_factory=TargetSlugs)

    @model_validator(mode="after")
    def validate_collections(self):
        """All three collection ids are required to run."""
        missing = [
            name
            for name in (
                "products_collection_id",
                "categories_collection_id",
                "partners_collection_id",
            )
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing Webflow collection ids: {', '.join(missing)}")
        return self

    @classmethod
    def from_settings(
        cls, settings: Settings, asset_base_url: Optional[str] = None
    ) -> "SyncExecutionConfig":
        """Build the run configuration from environment settings."""
        return cls(
            products_table=settings.AIRTABLE_PRODUCTS_TABLE,
            partners_table=settings.AIRTABLE_PARTNERS_TABLE,
            products_collection_id=settings.WF_COLLECTION_ID_PRODUITS,
            categories_collection_id=settings.WF_COLLECTION_ID_CATEGORIES,
            partners_collection_id=settings.WF_COLLECTION_ID_PARTENAIRES,
            batch_size=settings.SYNC_BATCH_SIZE,
            reference_lookup_limit=settings.REFERENCE_LOOKUP_LIMIT,
            option_settle_delay=settings.OPTION_SETTLE_DELAY_SECONDS,
            option_max_attempts=settings.OPTION_MAX_ATTEMPTS,
            option_backoff_max=settings.OPTION_BACKOFF_MAX_SECONDS,
            asset_base_url=asset_base_url,
        )
