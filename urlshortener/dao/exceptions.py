"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, timeouts, OOM, etc.).

    DuplicateKeyError:
        Raised when inserting a record whose code or alias already exists.

Example:
    >>> from urlshortener.dao.exceptions import DuplicateKeyError
    >>> raise DuplicateKeyError("Record with code 'abc123' already exists.")
    Traceback (most recent call last):
        ...
    urlshortener.dao.exceptions.DuplicateKeyError: Record with code 'abc123' already exists.
"""

from urlshortener.exceptions import ErrorKind, ShortenerError


class DAOError(ShortenerError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, etc.
    """

    error_code = 'dao:data_store_error'
    kind = ErrorKind.STORE_UNAVAILABLE


class DuplicateKeyError(DAOError):
    """Exception raised when a record with the same code or alias already exists in the data store."""

    error_code = 'dao:duplicate_key_error'
    kind = ErrorKind.DUPLICATE_KEY
