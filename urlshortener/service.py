"""Short code allocation and resolution service

The service is the only component that combines the encoder, the validator and
a store. Every public operation returns a `Result`; domain errors are raised
internally and converted into values at the service boundary, so nothing
raises past it.

Classes:
    ShortenerService:
        shorten / resolve / get_record / get_analytics / cleanup.

Functions:
    create_dao(config) -> UrlRecordBaseDAO
        Build the store selected by `config.backend`.

Example:
    >>> service = ShortenerService.from_config(ShortenerConfig.from_env())
    >>> result = service.shorten('example.com')
    >>> result.value.target
    'http://example.com'
    >>> service.resolve(result.value.code).value
    'http://example.com'
"""

import logging
from datetime import datetime, UTC

from urlshortener.config import ShortenerConfig
from urlshortener.constants import CLEANUP_COMPLETE, CLICK_NOT_RECORDED, CODE_COLLISION
from urlshortener.dao.base import UrlRecordBaseDAO
from urlshortener.dao.exceptions import DataStoreError, DuplicateKeyError
from urlshortener.encoding import encode, random_code
from urlshortener.exceptions import (
    AliasTakenError,
    AllocationExhaustedError,
    ErrorKind,
    ExpiredError,
    InvalidAliasError,
    InvalidUrlError,
    NotFoundError,
    ShortenerError,
)
from urlshortener.models import LinkAnalytics, Result, UrlRecord
from urlshortener.validation import is_valid_alias, is_valid_url, normalize_url


logger = logging.getLogger(__name__)


def create_dao(config: ShortenerConfig) -> UrlRecordBaseDAO:
    """Instantiate the store backend named by `config.backend`.

    Raises:
        DataStoreError:
            If the backend can't be reached or initialized.
    """
    if config.backend == 'sql':
        from urlshortener.dao.sql import UrlRecordSQLDAO

        return UrlRecordSQLDAO(
            database_url=config.database_url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            echo=config.echo_queries,
        )

    from urlshortener.dao.redis import UrlRecordRedisDAO

    return UrlRecordRedisDAO(**config.redis_kwargs(), prefix=config.key_prefix)


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive timestamps are taken to be UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ShortenerService:
    """Allocate, resolve and sweep short codes on top of a UrlRecordBaseDAO.

    The service holds no mutable state of its own; all shared state lives in
    the store, so one instance may serve many concurrent requests.

    Attributes:
        dao (UrlRecordBaseDAO):
            Store used for every operation.
        config (ShortenerConfig):
            Allocation and click tracking settings.
    """

    def __init__(self, dao: UrlRecordBaseDAO, config: ShortenerConfig | None = None):
        self.dao = dao
        self.config = config or ShortenerConfig()

    @classmethod
    def from_config(cls, config: ShortenerConfig) -> 'ShortenerService':
        return cls(create_dao(config), config)

    def shorten(self, url: str | None, alias: str | None = None, expires_at: datetime | None = None) -> Result[UrlRecord]:
        """Create a short code for `url`.

        Args:
            url (str | None):
                Target URL. A missing http(s) scheme defaults to http://.
            alias (str | None):
                Custom alias to use as the code. None means "generate one".
            expires_at (datetime | None):
                Expiry timestamp. None means the record never expires.

        Returns:
            Result[UrlRecord]:
                The persisted record, or one of InvalidUrl, InvalidAlias,
                AliasTaken, AllocationExhausted, StoreUnavailable.
        """
        try:
            return Result.success(self._shorten(url, alias, expires_at))
        except ShortenerError as e:
            return self._failure(e)

    def resolve(self, code: str | None) -> Result[str]:
        """Return the target URL for a code or alias, counting the click.

        Expired records are never redirected and never counted. A failed click
        increment is logged and otherwise ignored.
        """
        try:
            record = self._find(code)
            if record is None:
                raise NotFoundError(f"Short code '{code}' not found.")
            if record.is_expired(datetime.now(UTC)):
                raise ExpiredError(f"Short code '{code}' expired at {record.expires_at.isoformat()}.")
        except ShortenerError as e:
            return self._failure(e)

        if self.config.track_clicks:
            self._record_click(record.code)
        return Result.success(record.target)

    def get_record(self, code: str | None) -> Result[UrlRecord]:
        """Look a record up by code or alias without checking expiry or counting."""
        try:
            record = self._find(code)
        except ShortenerError as e:
            return self._failure(e)

        if record is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Short code '{code}' not found.")
        return Result.success(record)

    def get_analytics(self, code: str | None) -> Result[LinkAnalytics]:
        result = self.get_record(code)
        if not result.ok:
            return Result(error=result.error)
        return Result.success(LinkAnalytics.from_record(result.value, datetime.now(UTC)))

    def cleanup(self) -> Result[int]:
        """Delete every record that expired before now and return how many were removed."""
        try:
            removed = self.dao.delete_expired(datetime.now(UTC))
        except ShortenerError as e:
            return self._failure(e)

        logger.info('Removed %d expired records.', removed, extra={'event': CLEANUP_COMPLETE, 'removed': removed})
        return Result.success(removed)

    def _shorten(self, url: str | None, alias: str | None, expires_at: datetime | None) -> UrlRecord:
        if not is_valid_url(url):
            raise InvalidUrlError(f"Invalid URL: '{url}'")
        target = normalize_url(url)
        expires_at = _as_utc(expires_at)

        if alias is None:
            return self._allocate(target, expires_at)

        if not is_valid_alias(alias):
            raise InvalidAliasError(f"Invalid alias: '{alias}' (expected 3-50 characters from [A-Za-z0-9_-]).")
        alias = alias.strip()

        # Fail fast; the store's uniqueness constraint is the real guard
        if self.dao.exists_alias(alias) or self.dao.exists(alias):
            raise AliasTakenError(f"Alias '{alias}' is already taken.")

        record = UrlRecord(
            id=self.dao.next_id(),
            code=alias,
            target=target,
            created_at=datetime.now(UTC),
            expires_at=expires_at,
            alias=alias,
        )
        try:
            return self.dao.insert(record)
        except DuplicateKeyError as e:
            raise AliasTakenError(f"Alias '{alias}' is already taken.") from e

    def _allocate(self, target: str, expires_at: datetime | None) -> UrlRecord:
        """Generate a fresh code and persist the record under it.

        Each attempt draws a new sequence value, encodes it (falling back to a
        random code when the encoding is shorter than the configured minimum),
        and tries to insert. A collision, whether seen by the existence check or
        by the store on insert, spends one attempt.
        """
        min_length = self.config.short_code_length
        attempts = self.config.max_retry_attempts

        for attempt in range(1, attempts + 1):
            record_id = self.dao.next_id()
            code = encode(record_id)
            if len(code) < min_length:
                code = random_code(min_length)

            if self.dao.exists(code):
                logger.debug(
                    'Generated code already in use, retrying.',
                    extra={'event': CODE_COLLISION, 'code': code, 'attempt': attempt},
                )
                continue

            record = UrlRecord(
                id=record_id,
                code=code,
                target=target,
                created_at=datetime.now(UTC),
                expires_at=expires_at,
            )
            try:
                return self.dao.insert(record)
            except DuplicateKeyError:
                logger.info(
                    'Generated code claimed concurrently, retrying.',
                    extra={'event': CODE_COLLISION, 'code': code, 'attempt': attempt},
                )

        logger.warning('Short code allocation exhausted after %d attempts.', attempts, extra={'attempts': attempts})
        raise AllocationExhaustedError(f'Could not allocate a unique short code after {attempts} attempts.')

    def _find(self, code: str | None) -> UrlRecord | None:
        if code is None or not code.strip():
            return None
        code = code.strip()
        return self.dao.find_by_code(code) or self.dao.find_by_alias(code)

    def _record_click(self, code: str) -> None:
        try:
            counted = self.dao.increment_clicks(code)
        except DataStoreError:
            logger.warning('Failed to record click.', exc_info=True, extra={'event': CLICK_NOT_RECORDED, 'code': code})
            return

        if not counted:
            # Swept between lookup and increment; the redirect still stands
            logger.warning('Record vanished before its click was recorded.', extra={'event': CLICK_NOT_RECORDED, 'code': code})

    def _failure(self, error: ShortenerError) -> Result:
        kind = error.kind or ErrorKind.STORE_UNAVAILABLE
        if isinstance(error, DataStoreError):
            logger.error('Store unavailable.', exc_info=error, extra={'event': error.error_code})
        else:
            logger.info('Request rejected: %s', error, extra={'event': error.error_code, 'errorKind': str(kind)})
        return Result.failure(kind, str(error))
