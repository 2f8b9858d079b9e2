import functools
from typing import TypeVar, Any
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError

from urlshortener.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])


def handle_sqlalchemy_error[F](method: F) -> F:
    """Wrap SQL DAO methods to translate driver and pool failures into DataStoreError

    DuplicateKeyError raised by the wrapped method is not a SQLAlchemyError and
    passes through unchanged.

    Example:
        >>> @handle_sqlalchemy_error
        ... def exists(self, code):
        ...     ...
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            raise DataStoreError(f'Database operation failed on {self.connector.safe_url}: {e.__class__.__name__}.') from e

    return wrapper
