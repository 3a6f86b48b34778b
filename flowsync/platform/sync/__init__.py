"""Synchronization engine: mapping, resolution, provisioning, upsert, orchestration."""

from .orchestrator import SyncOrchestrator
from .types import BatchReport, OptionResolution, RecordResult, Resolution, UpsertResult

__all__ = [
    "BatchReport",
    "OptionResolution",
    "RecordResult",
    "Resolution",
    "SyncOrchestrator",
    "UpsertResult",
]
