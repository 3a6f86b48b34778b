"""Exceptions raised by the flowsync clients and sync components."""

from typing import Any, Optional


class FlowsyncException(Exception):
    """Base class for all flowsync errors."""

    pass


class ConfigurationError(FlowsyncException):
    """A required setting or schema field is missing or renamed.

    Not retried: the run cannot succeed until the configuration changes.
    """

    pass


class NotFoundException(FlowsyncException):
    """A record requested by id does not exist in the source store."""

    pass


class TransientRemoteError(FlowsyncException):
    """Rate limit, timeout or transport failure talking to a remote store.

    The failing record keeps an eligible sync state so the next scheduled run
    retries it.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        """Create a transient error.

        Args:
            message: Human readable description
            status_code: HTTP status when the failure came with a response
            retry_after: Seconds suggested by the remote before retrying
        """
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class TargetStoreError(FlowsyncException):
    """The target store rejected a request (validation, permissions, ...)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        """Create a target store error from the API's error payload."""
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details


class StaleReferenceError(TargetStoreError):
    """A cached target item id no longer resolves (deleted out of band)."""

    pass


class ImageNormalizationError(FlowsyncException):
    """An image could not be fetched, decoded or brought under its ceiling."""

    pass


class ImageSourceNotFoundError(ImageNormalizationError):
    """The upstream image URL answered 404."""

    pass
