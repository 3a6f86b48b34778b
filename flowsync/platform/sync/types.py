"""Result types returned by the sync components.

Lookups never raise for expected failures; they return a ``Resolution`` so the
orchestrator can tell a legitimately absent value from a lookup that failed,
log the latter, and still write the record without that field.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional

from flowsync.core.shared_models import ResolutionStatus, SyncState, UpsertOutcome

if TYPE_CHECKING:
    from flowsync.platform.entities.webflow import CollectionSchema


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a reference or an option to a target id."""

    status: ResolutionStatus
    value: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def resolved(cls, value: str, **extra: Any) -> "Resolution":
        """A target id was found or created."""
        return cls(ResolutionStatus.RESOLVED, value=value, **extra)

    @classmethod
    def omitted(cls, reason: Optional[str] = None, **extra: Any) -> "Resolution":
        """Nothing to resolve (empty input)."""
        return cls(ResolutionStatus.OMITTED, reason=reason, **extra)

    @classmethod
    def failed(cls, reason: str, **extra: Any) -> "Resolution":
        """The lookup failed; the field is left out of the payload."""
        return cls(ResolutionStatus.FAILED, reason=reason, **extra)

    @classmethod
    def timed_out(cls, reason: str, **extra: Any) -> "Resolution":
        """A write was issued but its result never became visible."""
        return cls(ResolutionStatus.TIMED_OUT, reason=reason, **extra)

    @property
    def ok(self) -> bool:
        """True when ``value`` holds a usable id."""
        return self.status == ResolutionStatus.RESOLVED

    @property
    def degraded(self) -> bool:
        """True when the lookup failed rather than being legitimately empty."""
        return self.status in (ResolutionStatus.FAILED, ResolutionStatus.TIMED_OUT)


@dataclass(frozen=True)
class OptionResolution(Resolution):
    """Resolution of an option id, with the schema the provisioner last observed."""

    schema: Optional["CollectionSchema"] = None
    created: bool = False


@dataclass(frozen=True)
class UpsertResult:
    """Target item id after a successful write, and which write happened."""

    item_id: str
    outcome: UpsertOutcome


@dataclass
class RecordResult:
    """What happened to one source record during a run."""

    record_id: str
    name: Optional[str]
    state: SyncState
    item_id: Optional[str] = None
    slug: Optional[str] = None
    outcome: Optional[UpsertOutcome] = None
    error: Optional[str] = None
    degraded_fields: List[str] = field(default_factory=list)


@dataclass
class BatchReport:
    """Aggregated result of one batch run."""

    records: List[RecordResult] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        """True when the run itself aborted (e.g. the batch query failed)."""
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        """True when nothing was pending."""
        return not self.records

    @property
    def published_count(self) -> int:
        """Number of records that ended Published."""
        return sum(1 for r in self.records if r.state == SyncState.PUBLISHED)

    @property
    def error_count(self) -> int:
        """Number of records that ended in Error."""
        return sum(1 for r in self.records if r.state == SyncState.ERROR)

    def summary(self) -> str:
        """Get a summary string of the batch."""
        return (
            f"{len(self.records)} records: {self.published_count} published, "
            f"{self.error_count} errors"
        )
