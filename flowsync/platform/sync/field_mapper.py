"""Translate source records into Webflow ``fieldData`` payloads."""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

from slugify import slugify as _slugify

from flowsync.platform.entities.airtable import SourceRecord

# encodeURIComponent leaves these unescaped; Webflow fetches the URL as-is
_URI_COMPONENT_SAFE = "!~*'()"


def slugify(text: Any) -> str:
    """Build a Webflow-compatible slug.

    Lowercase, accents stripped, ``&`` spelled ``et``, ASCII letters, digits and
    single hyphens only, no leading or trailing hyphen.

    >>> slugify("Café & Croissants")
    'cafe-et-croissants'
    """
    if text is None:
        return ""
    return _slugify(str(text), replacements=[["&", "-et-"]])


def clean_fields(field_data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is ``None`` or an empty string.

    Webflow validators treat a present-but-empty field differently from an
    absent one, so empty values are never sent. Falsy values that carry meaning
    (``0``, ``False``) are kept.
    """
    return {k: v for k, v in field_data.items() if v is not None and v != ""}


def make_proxy_url(original_url: Optional[str], base_url: str) -> Optional[str]:
    """Rewrite an asset URL so Webflow fetches it through the image proxy."""
    if not original_url:
        return None
    encoded = quote(original_url, safe=_URI_COMPONENT_SAFE)
    return f"{base_url.rstrip('/')}/api/sync?proxy_url={encoded}"


def build_slug(
    existing: Optional[str], name: Optional[str], rng: Optional[random.Random] = None
) -> str:
    """Reuse the stored slug, or derive one from the name with a random suffix."""
    if existing:
        return existing
    suffix = (rng or random).randint(0, 999)
    return f"{slugify(name)}-{suffix}"


class FieldTransform(str, Enum):
    """How a source value is carried into the payload."""

    COPY = "copy"
    TEXT = "text"
    LIST = "list"


@dataclass(frozen=True)
class FieldMapping:
    """One source column → target slug translation."""

    source_field: str
    target_slug: str
    transform: FieldTransform = FieldTransform.COPY


def to_text(value: Any) -> Optional[str]:
    """Coerce a numeric-as-text value; integral floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def flatten_list(value: Any) -> Optional[List[Any]]:
    """Flatten a multi-reference value into a flat list; empty becomes ``None``."""
    if value is None or value == "":
        return None
    if not isinstance(value, (list, tuple)):
        return [value]
    flat: List[Any] = []
    for item in value:
        if isinstance(item, (list, tuple)):
            flat.extend(i for i in item if i is not None and i != "")
        elif item is not None and item != "":
            flat.append(item)
    return flat or None


_TRANSFORMS = {
    FieldTransform.COPY: lambda v: v,
    FieldTransform.TEXT: to_text,
    FieldTransform.LIST: flatten_list,
}


DEFAULT_PRODUCT_MAPPINGS: Sequence[FieldMapping] = (
    FieldMapping("Marque produit", "marque-produit"),
    FieldMapping("Référence produit", "reference-produit"),
    FieldMapping("Unité", "unite"),
    FieldMapping("Stock de départ", "stock-de-depart"),
    FieldMapping("Stock restant", "stock-restant"),
    FieldMapping("Info sup Stock", "info-sup-stock"),
    FieldMapping("Dimensions du produit", "dimensions-du-produit"),
    FieldMapping("Description", "description"),
    FieldMapping("Prix de vente", "prix-de-vente"),
    FieldMapping("Prix du neuf", "prix-du-neuf"),
    FieldMapping("Info sup Prix", "info-sup-prix"),
    FieldMapping("Pourcentage réduction", "pourcentage-reduction", FieldTransform.TEXT),
    FieldMapping("Lien vers l'annonce", "lien-vers-l-annonce"),
)


class FieldMapper:
    """Pure translation of a record's cells into a cleaned payload."""

    def __init__(self, mappings: Iterable[FieldMapping] = DEFAULT_PRODUCT_MAPPINGS):
        """Initialize with the translation table."""
        self.mappings = tuple(mappings)

    def map(self, record: SourceRecord, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Return the cleaned payload for ``record``.

        Args:
            record: Source record to translate
            extra: Already-resolved values (name, slug, reference ids, ...) merged
                over the mapped cells before cleaning
        """
        payload: Dict[str, Any] = {}
        for mapping in self.mappings:
            payload[mapping.target_slug] = _TRANSFORMS[mapping.transform](
                record.get(mapping.source_field)
            )
        if extra:
            payload.update(extra)
        return clean_fields(payload)
