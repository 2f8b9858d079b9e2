import logging
import functools
from typing import TypeVar, Any
from collections.abc import Callable

import redis

from urlshortener.dao.exceptions import DataStoreError


__all__ = []

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

# Failures meaning "the store can't serve this request right now"
UNAVAILABLE_ERRORS = (
    redis.exceptions.ConnectionError,
    redis.exceptions.TimeoutError,
    redis.exceptions.BusyLoadingError,
    redis.exceptions.ReadOnlyError,
)


def redis_location(client: redis.Redis) -> str:
    """Render 'host:port/db' of a client's connection pool for error messages."""
    info = client.connection_pool.connection_kwargs
    return f'{info.get("host")}:{info.get("port")}/{info.get("db")}'


def handle_redis_connection_error[F](method: F) -> F:
    """Wrap Redis-interacting DAO methods so every Redis failure surfaces as DataStoreError

    Connection drops, timeouts, a server still loading its dataset and a
    read-only replica mean the store is unreachable and are logged as
    warnings. Any other Redis error (WRONGTYPE, NOSCRIPT, a failing script)
    means the store can't answer correctly and is logged with its traceback.

    Example:
        >>> @handle_redis_connection_error
        ... def next_id(self):
        ...     return self.redis.incr('meta:counter')
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except UNAVAILABLE_ERRORS as e:
            location = redis_location(self.redis)
            logger.warning(
                'Redis operation %s failed.',
                method.__name__,
                extra={'redis': location, 'error': e.__class__.__name__},
            )
            raise DataStoreError(f"Can't connect to Redis at {location}.") from e
        except redis.exceptions.RedisError as e:
            location = redis_location(self.redis)
            logger.exception(
                'Redis operation %s returned an error.',
                method.__name__,
                extra={'redis': location, 'error': e.__class__.__name__},
            )
            raise DataStoreError(f'Redis operation {method.__name__} failed at {location}: {e.__class__.__name__}.') from e

    return wrapper
