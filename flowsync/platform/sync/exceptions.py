"""Sync-specific exceptions for error handling."""


class RecordProcessingError(Exception):
    """Raised when an individual source record cannot be synchronized.

    This is a recoverable error - the batch continues with other records.
    The record is logged and its sync state is set to Erreur.

    Examples:
    - Target store rejected the payload (validation)
    - Rate limit still exceeded after retries
    - Write-back to the source record failed

    Usage:
        raise RecordProcessingError(f"Failed to sync record {record_id}: {reason}")
    """

    pass


class SyncFailureError(Exception):
    """Raised when a critical error occurs that should fail the entire run.

    This is a non-recoverable error - the run is terminated immediately.

    Examples:
    - The pending-records query failed
    - Missing required configuration

    Usage:
        raise SyncFailureError("Could not query pending records")
    """

    pass
