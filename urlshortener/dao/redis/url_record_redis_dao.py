"""Data Access Object (DAO) implementation for managing URL records in Redis

This module provides a Redis-based implementation of UrlRecordBaseDAO.

Responsibilities:
    - Insert and retrieve URL records from Redis;
    - Increment the global sequence counter;
    - Atomically increment per-link click counters;
    - Sweep expired records;
    - Provide defensive error handling and raise appropriate DAO exceptions.

Classes:
    UrlRecordRedisDAO:
        DAO for storing and retrieving UrlRecord in a Redis datastore.

Example:
    >>> from urlshortener.models import UrlRecord
    >>> from urlshortener.dao.redis import UrlRecordRedisDAO

    >>> dao = UrlRecordRedisDAO(prefix="app:dev")

    >>> record = UrlRecord(id=dao.next_id(), code="abc123", target="https://example.com/page")
    >>> dao.insert(record)
    UrlRecord(id=1, code='abc123', ...)

    >>> dao.find_by_code("abc123").target
    'https://example.com/page'

    >>> dao.increment_clicks("abc123")
    True
"""

from datetime import datetime, UTC

import redis
from beartype import beartype

from urlshortener.models import UrlRecord
from urlshortener.types import RecordMapping
from urlshortener.dao.base import UrlRecordBaseDAO
from urlshortener.dao.redis.mixins import RedisClientMixin
from urlshortener.dao.redis.helpers import handle_redis_connection_error
from urlshortener.dao.exceptions import DuplicateKeyError


# KEYS[1]: links:<code>. Returns the new click count, 0 if the record doesn't exist.
INCREMENT_CLICKS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
return redis.call('HINCRBY', KEYS[1], 'clicks', 1)
"""


def _to_mapping(record: UrlRecord) -> RecordMapping:
    mapping = {
        'id': record.id,
        'code': record.code,
        'target': record.target,
        'created_at': record.created_at.astimezone(UTC).isoformat(),
        'clicks': record.clicks,
    }
    if record.expires_at is not None:
        mapping['expires_at'] = record.expires_at.astimezone(UTC).isoformat()
    if record.alias is not None:
        mapping['alias'] = record.alias
    return mapping


def _from_mapping(mapping: RecordMapping) -> UrlRecord:
    expires_at = mapping.get('expires_at')
    return UrlRecord(
        id=int(mapping['id']),
        code=mapping['code'],
        target=mapping['target'],
        created_at=datetime.fromisoformat(mapping['created_at']),
        expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        clicks=int(mapping.get('clicks', 0)),
        alias=mapping.get('alias') or None,
    )


class UrlRecordRedisDAO(RedisClientMixin, UrlRecordBaseDAO):
    """Redis-based Data Access Object (DAO) for managing URL records

    This class implements the UrlRecordBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        next_id() -> int:
            INCR the global counter.
        exists(code) / exists_alias(alias) -> bool:
            Key existence checks.
        insert(record) -> UrlRecord:
            Optimistic WATCH/MULTI insert. Raises DuplicateKeyError on collision.
        find_by_code(code) / find_by_alias(alias) -> UrlRecord | None:
            Record lookups.
        increment_clicks(code) -> bool:
            Atomic server-side increment; never creates a record.
        delete_expired(now) -> int:
            Remove records whose expiry score is strictly below `now`.

    All methods raise DataStoreError on connectivity issues with Redis.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._increment_clicks = self.redis.register_script(INCREMENT_CLICKS_SCRIPT)

    @handle_redis_connection_error
    def next_id(self, **kwargs) -> int:
        """INCR the global sequence counter and return its new value.

        Example:
            >>> dao.next_id()
            124
        """
        return int(self.redis.incr(self.keys.counter_key()))

    @handle_redis_connection_error
    @beartype
    def exists(self, code: str, **kwargs) -> bool:
        return bool(self.redis.exists(self.keys.link_key(code)))

    @handle_redis_connection_error
    @beartype
    def exists_alias(self, alias: str, **kwargs) -> bool:
        return bool(self.redis.exists(self.keys.alias_key(alias)))

    @handle_redis_connection_error
    @beartype
    def insert(self, record: UrlRecord, **kwargs) -> UrlRecord:
        """Insert a URL record into Redis

        The record hash, its alias pointer and its expiry index entry are
        written in one MULTI/EXEC block guarded by WATCH on every key that
        could collide. If another client creates any of those keys between
        the existence check and EXEC, Redis aborts the transaction and
        nothing is written.

        Args:
            record (UrlRecord):
                UrlRecord instance to persist.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            UrlRecord: the persisted record.

        Raises:
            DuplicateKeyError:
                If the code or alias already exists (or was claimed concurrently).
            DataStoreError:
                If a Redis connection issue occurs during the transaction.

        Example:
            >>> dao.insert(UrlRecord(id=7, code='my-link', target='https://example.com', alias='my-link'))
            UrlRecord(id=7, code='my-link', ...)
        """
        link_key = self.keys.link_key(record.code)
        guarded_keys = [link_key, self.keys.alias_key(record.code)]
        if record.alias is not None and record.alias != record.code:
            guarded_keys.append(self.keys.alias_key(record.alias))

        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(*guarded_keys)
                if pipe.exists(*guarded_keys):
                    raise DuplicateKeyError(f"Record with code '{record.code}' or alias '{record.alias}' already exists.")

                pipe.multi()
                pipe.hset(link_key, mapping=_to_mapping(record))
                if record.alias is not None:
                    pipe.set(self.keys.alias_key(record.alias), record.code)
                if record.expires_at is not None:
                    pipe.zadd(self.keys.expiry_index_key(), {record.code: record.expires_at.timestamp()})
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise DuplicateKeyError(f"Record with code '{record.code}' was claimed concurrently.") from e

        return record

    @handle_redis_connection_error
    @beartype
    def find_by_code(self, code: str, **kwargs) -> UrlRecord | None:
        mapping = self.redis.hgetall(self.keys.link_key(code))
        if not mapping:
            return None
        return _from_mapping(mapping)

    @handle_redis_connection_error
    @beartype
    def find_by_alias(self, alias: str, **kwargs) -> UrlRecord | None:
        code = self.redis.get(self.keys.alias_key(alias))
        if code is None:
            return None

        mapping = self.redis.hgetall(self.keys.link_key(code))
        if not mapping:
            # Record swept between the two reads
            return None
        return _from_mapping(mapping)

    @handle_redis_connection_error
    @beartype
    def increment_clicks(self, code: str, **kwargs) -> bool:
        """Increment the click counter of a record.

        NOTE: the existence check and HINCRBY run inside one Lua script, so a
              record deleted by the expiry sweep is never resurrected as a
              hash holding only a 'clicks' field.

        Example:
            >>> dao.increment_clicks('abc123')
            True
            >>> dao.increment_clicks('missing')
            False
        """
        clicks = self._increment_clicks(keys=[self.keys.link_key(code)])
        return int(clicks) > 0

    @handle_redis_connection_error
    @beartype
    def delete_expired(self, now: datetime, **kwargs) -> int:
        """Remove all records whose expiry timestamp is strictly before `now`.

        Only codes whose ZREM succeeds in this call are counted, so concurrent
        sweeps never double count.

        Example:
            >>> dao.delete_expired(datetime.now(UTC))
            3
        """
        expiry_key = self.keys.expiry_index_key()
        codes = self.redis.zrangebyscore(expiry_key, '-inf', f'({now.timestamp()}')
        if not codes:
            return 0

        with self.redis.pipeline(transaction=False) as pipe:
            for code in codes:
                pipe.hget(self.keys.link_key(code), 'alias')
            aliases = pipe.execute()

        with self.redis.pipeline(transaction=True) as pipe:
            for code, alias in zip(codes, aliases):
                pipe.zrem(expiry_key, code)
                if alias:
                    pipe.delete(self.keys.link_key(code), self.keys.alias_key(alias))
                else:
                    pipe.delete(self.keys.link_key(code))
            results = pipe.execute()

        # results alternate: ZREM reply, DEL reply
        return sum(int(removed) for removed in results[0::2])
