"""
regioncache - Core Error Types

Defines the exception hierarchy for the region cache runtime.
All exceptions inherit from RegionCacheError for consistent error handling.

Two families live here:
- Cache errors, raised by the region cache engine and its collaborators
- Store errors, raised by backing document store adapters
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes attached to serialized errors.

    Used by callers that surface cache failures over an API boundary.
    """

    # Configuration
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    CACHE_NOT_FOUND = "CACHE_NOT_FOUND"

    # Cache engine
    UNSUPPORTED_BACKEND = "UNSUPPORTED_BACKEND"
    NOT_SERIALIZABLE = "NOT_SERIALIZABLE"
    DESERIALIZATION_FAILED = "DESERIALIZATION_FAILED"
    LOAD_FAILED = "LOAD_FAILED"
    INDEX_PROVISIONING_FAILED = "INDEX_PROVISIONING_FAILED"
    DESTRUCTIVE_OPERATION_REFUSED = "DESTRUCTIVE_OPERATION_REFUSED"

    # Store
    STORE_ERROR = "STORE_ERROR"
    STORE_TIMEOUT = "STORE_TIMEOUT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    DOCUMENT_EXISTS = "DOCUMENT_EXISTS"
    OPERATION_NOT_SUPPORTED = "OPERATION_NOT_SUPPORTED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class RegionCacheError(Exception):
    """Base exception for all regioncache errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RegionCacheError):
    """Raised when configuration is invalid or missing."""

    error_code = ErrorCode.INVALID_CONFIGURATION


class CacheNotFoundError(RegionCacheError):
    """Raised when a cache name is unknown and dynamic creation is disabled."""

    error_code = ErrorCode.CACHE_NOT_FOUND

    def __init__(self, name: str):
        super().__init__(f"Cache not found: {name!r}", {"cache_name": name})
        self.name = name


# ---------------------------------------------------------------------------
# Cache engine errors
# ---------------------------------------------------------------------------


class CacheError(RegionCacheError):
    """Base exception for cache engine errors."""


class UnsupportedBackendError(CacheError):
    """Raised when the backing store's capabilities cannot be classified."""

    error_code = ErrorCode.UNSUPPORTED_BACKEND

    def __init__(self, store_type: Any, details: dict[str, Any] | None = None):
        message = f"Unsupported backing store type: {store_type!r}"
        error_details = {"store_type": str(store_type)}
        error_details.update(details or {})
        super().__init__(message, error_details)
        self.store_type = store_type


class NotSerializableError(CacheError):
    """Raised when a value handed to put cannot be serialized."""

    error_code = ErrorCode.NOT_SERIALIZABLE

    def __init__(self, value: Any, reason: str | None = None):
        message = f"Value of type {type(value).__name__} is not serializable"
        if reason:
            message += f": {reason}"
        super().__init__(message, {"value_type": type(value).__name__})


class DeserializationError(CacheError):
    """Raised when stored content cannot be interpreted as the requested type."""

    error_code = ErrorCode.DESERIALIZATION_FAILED


class LoadError(CacheError):
    """Raised when a value loader fails during get_or_load. The cause is chained."""

    error_code = ErrorCode.LOAD_FAILED

    def __init__(self, key: Any, cause: BaseException):
        message = f"Failed to load key {key!r}: {cause}"
        super().__init__(message, {"key": str(key), "cause": type(cause).__name__})
        self.key = key
        self.cause = cause


class IndexProvisioningError(CacheError):
    """Raised when the region index or view could not be set up."""

    error_code = ErrorCode.INDEX_PROVISIONING_FAILED


class DestructiveOperationRefused(CacheError):
    """Raised when clear() would flush the whole store without explicit opt-in."""

    error_code = ErrorCode.DESTRUCTIVE_OPERATION_REFUSED

    def __init__(self, region: str, store: str):
        message = (
            f"Refusing to clear region {region!r}: store {store!r} only supports a "
            "whole-store flush and destructive mode (allow_flush) is not enabled"
        )
        super().__init__(message, {"region": region, "store": store})


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------


class StoreError(RegionCacheError):
    """Base exception for backing store failures."""

    error_code = ErrorCode.STORE_ERROR


class DocumentNotFoundError(StoreError):
    """Raised by remove() when the document does not exist."""

    error_code = ErrorCode.DOCUMENT_NOT_FOUND

    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}", {"id": document_id})
        self.document_id = document_id


class DocumentExistsError(StoreError):
    """Raised by insert() when the document already exists."""

    error_code = ErrorCode.DOCUMENT_EXISTS

    def __init__(self, document_id: str):
        super().__init__(f"Document already exists: {document_id}", {"id": document_id})
        self.document_id = document_id


class IndexExistsError(StoreError):
    """Raised by create_primary_index() when the index already exists."""

    error_code = ErrorCode.DOCUMENT_EXISTS


class StoreOperationNotSupported(StoreError):
    """Raised when a store is asked for a capability it does not have."""

    error_code = ErrorCode.OPERATION_NOT_SUPPORTED

    def __init__(self, store: str, operation: str):
        super().__init__(
            f"Store {store!r} does not support {operation}",
            {"store": store, "operation": operation},
        )


class StoreTimeoutError(StoreError):
    """Raised when a store call times out."""

    error_code = ErrorCode.STORE_TIMEOUT


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached."""

    error_code = ErrorCode.STORE_UNAVAILABLE
