"""Shared Redis connection setup for Redis-backed DAOs.

A DAO instance owns one `redis.ConnectionPool`. Each command borrows a
connection from the pool for its duration, so a single DAO can serve
concurrent requests without them sharing a socket.

Classes:
    - RedisClientMixin: builds (or adopts) the client, the key schema, and
      verifies the server answers before the DAO is handed out.

Example:
    >>> class UrlRecordRedisDAO(RedisClientMixin, UrlRecordBaseDAO):
    ...     pass
    ...
    >>> dao = UrlRecordRedisDAO(redis_host='cache.internal', prefix='urlshortener:prod')
    >>> dao.ping()
    True
"""

import redis

from urlshortener.dao.redis.helpers import UNAVAILABLE_ERRORS, redis_location
from urlshortener.dao.redis.redis_key_schema import RedisKeySchema
from urlshortener.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Give a DAO a pooled Redis client and a key schema.

    Attributes:
        redis (redis.Redis):
            Client bound to the DAO's connection pool.
        keys (RedisKeySchema):
            Generates the namespaced keys the DAO reads and writes.
    """

    def __init__(
        self,
        redis_host: str = 'localhost',
        redis_port: int | str = 6379,
        redis_db: int | str = 0,
        redis_username: str | None = None,
        redis_password: str | None = None,
        redis_socket_timeout: float | None = 5.0,
        redis_max_connections: int | None = None,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
    ):
        """Set up the client and fail fast if the server can't be reached.

        Pass `redis_client` to adopt an existing client (tests, shared
        clients); otherwise a connection pool is built from the `redis_*`
        parameters. Port and db may arrive as strings straight from the
        environment.

        Raises:
            DataStoreError:
                If the server does not answer PING.
        """
        if redis_client is None:
            pool = redis.ConnectionPool(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                username=redis_username,
                password=redis_password,
                socket_timeout=redis_socket_timeout,
                max_connections=redis_max_connections,
                decode_responses=True,
            )
            redis_client = redis.Redis(connection_pool=pool)

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        if not self.ping():
            raise DataStoreError(
                f"Can't connect to Redis at {redis_location(self.redis)}. Check the provided configuration parameters."
            )

    def ping(self) -> bool:
        """Return True when the server answers PING, False when it is unreachable."""
        try:
            return bool(self.redis.ping())
        except UNAVAILABLE_ERRORS:
            return False
