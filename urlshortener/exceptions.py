"""Application-wide exception hierarchy.

Every exception carries a stable `error_code` (used in logs and HTTP bodies)
and, where it maps onto the service's failure taxonomy, an `ErrorKind`.

Classes:
    ErrorKind:
        Failure taxonomy surfaced by ShortenerService results.

    ShortenerError:
        Base class for all application-specific errors.

    InvalidEncodingError, InvalidUrlError, InvalidAliasError, AliasTakenError,
    AllocationExhaustedError, NotFoundError, ExpiredError:
        Domain errors raised inside the service and converted into values at
        its boundary.

    ConfigurationError, BadConfigurationError:
        Startup-time configuration errors.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_URL = 'InvalidUrl'
    INVALID_ALIAS = 'InvalidAlias'
    ALIAS_TAKEN = 'AliasTaken'
    ALLOCATION_EXHAUSTED = 'AllocationExhausted'
    DUPLICATE_KEY = 'DuplicateKey'
    NOT_FOUND = 'NotFound'
    EXPIRED = 'Expired'
    STORE_UNAVAILABLE = 'StoreUnavailable'
    INVALID_ENCODING = 'InvalidEncoding'


class ShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:shortener_error'
    kind: ErrorKind | None = None


class InvalidEncodingError(ShortenerError, ValueError):
    """Raised when a string contains characters outside the base62 alphabet."""

    error_code = 'encoding:invalid_encoding_error'
    kind = ErrorKind.INVALID_ENCODING


class InvalidUrlError(ShortenerError):
    """Raised when a target URL fails validation."""

    error_code = 'validation:invalid_url_error'
    kind = ErrorKind.INVALID_URL


class InvalidAliasError(ShortenerError):
    """Raised when a custom alias has an invalid format."""

    error_code = 'validation:invalid_alias_error'
    kind = ErrorKind.INVALID_ALIAS


class AliasTakenError(ShortenerError):
    """Raised when a custom alias collides with an existing code or alias."""

    error_code = 'allocation:alias_taken_error'
    kind = ErrorKind.ALIAS_TAKEN


class AllocationExhaustedError(ShortenerError):
    """Raised when no unique short code could be allocated within the retry budget."""

    error_code = 'allocation:allocation_exhausted_error'
    kind = ErrorKind.ALLOCATION_EXHAUSTED


class NotFoundError(ShortenerError):
    """Raised when neither a code nor an alias matches the requested value."""

    error_code = 'resolution:not_found_error'
    kind = ErrorKind.NOT_FOUND


class ExpiredError(ShortenerError):
    """Raised when resolving a record whose expiry has passed."""

    error_code = 'resolution:expired_error'
    kind = ErrorKind.EXPIRED


class ConfigurationError(ShortenerError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
