"""Shared enums used across the sync components."""

from enum import Enum


class SyncState(str, Enum):
    """Value of the source record's ``Status SYNC`` column.

    A record moves from PENDING or UPDATE_REQUESTED to PUBLISHED or ERROR, and
    only an operator puts it back in an eligible state.
    """

    PENDING = "A Publier"
    UPDATE_REQUESTED = "Mise à jour demandée"
    PUBLISHED = "Publié"
    ERROR = "Erreur"

    @classmethod
    def eligible(cls) -> tuple["SyncState", ...]:
        """States picked up by a batch run."""
        return (cls.PENDING, cls.UPDATE_REQUESTED)


class ResolutionStatus(str, Enum):
    """Outcome of a reference or option lookup."""

    RESOLVED = "resolved"
    OMITTED = "omitted"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class UpsertOutcome(str, Enum):
    """Which write the upsert reconciler performed."""

    CREATED = "created"
    UPDATED = "updated"
    RECREATED = "recreated"
