"""Unit tests for ShortenerService in service.py.

Test coverage includes:

1. shorten(): validation, alias handling, allocation loop, store failures
2. resolve(): lookup order, expiry, best-effort click counting
3. get_record() / get_analytics()
4. cleanup()
5. End-to-end scenarios against real stores (SQLite file, fake Redis server)
6. create_dao() backend selection
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, UTC
from pathlib import Path
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from freezegun import freeze_time

from urlshortener.config import ShortenerConfig
from urlshortener.dao.base import UrlRecordBaseDAO
from urlshortener.dao.exceptions import DataStoreError, DuplicateKeyError
from urlshortener.dao.redis import UrlRecordRedisDAO
from urlshortener.dao.sql import UrlRecordSQLDAO
from urlshortener.exceptions import ErrorKind
from urlshortener.models import LinkAnalytics, UrlRecord
from urlshortener.service import ShortenerService, create_dao


NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def dao() -> UrlRecordBaseDAO:
    mock = MagicMock(spec=UrlRecordBaseDAO)
    mock.exists.return_value = False
    mock.exists_alias.return_value = False
    mock.insert.side_effect = lambda record: record
    mock.find_by_code.return_value = None
    mock.find_by_alias.return_value = None
    mock.increment_clicks.return_value = True
    return mock


@pytest.fixture
def config() -> ShortenerConfig:
    return ShortenerConfig(short_code_length=1)


@pytest.fixture
def service(dao: UrlRecordBaseDAO, config: ShortenerConfig) -> ShortenerService:
    return ShortenerService(dao, config)


def stored(code: str = 'abc123', **kwargs) -> UrlRecord:
    return UrlRecord(id=1, code=code, target='https://example.com', created_at=NOW, **kwargs)


# -------------------------------
# 1. shorten()
# -------------------------------


class TestShorten:
    def test_generated_code_from_sequence(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.return_value = 238328

        result = service.shorten('  example.com  ')

        assert result.ok
        assert result.value.code == '1000'
        assert result.value.id == 238328
        assert result.value.target == 'http://example.com'
        assert result.value.alias is None
        dao.exists.assert_called_once_with('1000')
        dao.insert.assert_called_once()

    def test_short_encoding_falls_back_to_random_code(self, dao: UrlRecordBaseDAO, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr('urlshortener.service.random_code', lambda length: 'R' * length)
        dao.next_id.return_value = 62
        service = ShortenerService(dao, ShortenerConfig(short_code_length=6))

        result = service.shorten('https://example.com')

        assert result.value.code == 'RRRRRR'
        assert result.value.id == 62

    def test_default_configuration_yields_six_character_codes(self, dao: UrlRecordBaseDAO):
        dao.next_id.return_value = 1
        result = ShortenerService(dao).shorten('https://example.com')
        assert len(result.value.code) >= 6

    def test_collision_draws_a_fresh_sequence_value(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.side_effect = [10, 11]
        dao.exists.side_effect = [True, False]

        result = service.shorten('https://example.com')

        assert result.value.code == 'B'
        assert dao.next_id.call_count == 2

    def test_duplicate_key_on_insert_is_retried(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.side_effect = [10, 11]
        dao.insert.side_effect = [DuplicateKeyError('taken'), stored('B')]

        result = service.shorten('https://example.com')

        assert result.ok
        assert dao.insert.call_count == 2

    def test_allocation_exhausted(self, dao: UrlRecordBaseDAO, caplog: pytest.LogCaptureFixture):
        dao.next_id.side_effect = range(100, 200)
        dao.exists.return_value = True
        service = ShortenerService(dao, ShortenerConfig(short_code_length=1, max_retry_attempts=3))

        with caplog.at_level(logging.WARNING, logger='urlshortener.service'):
            result = service.shorten('https://example.com')

        assert result.error.kind == ErrorKind.ALLOCATION_EXHAUSTED
        assert dao.next_id.call_count == 3
        dao.insert.assert_not_called()
        assert 'allocation exhausted' in caplog.text

    def test_persistent_duplicate_keys_exhaust_allocation(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.side_effect = range(100, 200)
        dao.insert.side_effect = DuplicateKeyError('taken')

        result = service.shorten('https://example.com')

        assert result.error.kind == ErrorKind.ALLOCATION_EXHAUSTED
        assert dao.insert.call_count == 5

    @pytest.mark.parametrize('url', [None, '', 'javascript:alert(1)', 'ftp://example.com', 'not-a-url'])
    def test_invalid_url(self, service: ShortenerService, dao: UrlRecordBaseDAO, url):
        result = service.shorten(url)

        assert result.error.kind == ErrorKind.INVALID_URL
        dao.next_id.assert_not_called()

    def test_custom_alias(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.return_value = 5

        result = service.shorten('https://x.com', alias=' my-link ')

        assert result.value.code == 'my-link'
        assert result.value.alias == 'my-link'
        assert result.value.id == 5
        dao.exists_alias.assert_called_once_with('my-link')

    @pytest.mark.parametrize('alias', ['ab', 'abc def', 'abc.def', ''])
    def test_invalid_alias(self, service: ShortenerService, dao: UrlRecordBaseDAO, alias):
        result = service.shorten('https://x.com', alias=alias)

        assert result.error.kind == ErrorKind.INVALID_ALIAS
        dao.insert.assert_not_called()

    def test_invalid_url_is_reported_before_invalid_alias(self, service: ShortenerService):
        assert service.shorten('javascript:alert(1)', alias='ab').error.kind == ErrorKind.INVALID_URL

    def test_alias_taken_by_existing_alias(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.exists_alias.return_value = True

        result = service.shorten('https://x.com', alias='my-link')

        assert result.error.kind == ErrorKind.ALIAS_TAKEN
        dao.next_id.assert_not_called()

    def test_alias_taken_by_existing_code(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.exists.side_effect = lambda code: code == 'x7Kp2Q'
        assert service.shorten('https://x.com', alias='x7Kp2Q').error.kind == ErrorKind.ALIAS_TAKEN

    def test_alias_claimed_concurrently(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.return_value = 5
        dao.insert.side_effect = DuplicateKeyError('taken')

        result = service.shorten('https://x.com', alias='my-link')

        assert result.error.kind == ErrorKind.ALIAS_TAKEN
        assert dao.insert.call_count == 1

    def test_naive_expiry_is_taken_as_utc(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.next_id.return_value = 5
        result = service.shorten('https://x.com', expires_at=datetime(2030, 1, 1))
        assert result.value.expires_at == datetime(2030, 1, 1, tzinfo=UTC)

    @pytest.mark.parametrize('failing_method', ['next_id', 'exists', 'insert'])
    def test_store_failure_is_store_unavailable(self, service: ShortenerService, dao: UrlRecordBaseDAO, failing_method):
        dao.next_id.return_value = 5
        getattr(dao, failing_method).side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")

        result = service.shorten('https://example.com')

        assert result.error.kind == ErrorKind.STORE_UNAVAILABLE
        assert 'redis.test' in result.error.message


# -------------------------------
# 2. resolve()
# -------------------------------


class TestResolve:
    def test_resolve_by_code_counts_click(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.return_value = stored()

        result = service.resolve('abc123')

        assert result.value == 'https://example.com'
        dao.find_by_alias.assert_not_called()
        dao.increment_clicks.assert_called_once_with('abc123')

    def test_resolve_falls_back_to_alias(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_alias.return_value = stored('my-link', alias='my-link')

        assert service.resolve('my-link').value == 'https://example.com'
        dao.increment_clicks.assert_called_once_with('my-link')

    @pytest.mark.parametrize('code', ['missing', '', None])
    def test_not_found(self, service: ShortenerService, dao: UrlRecordBaseDAO, code):
        result = service.resolve(code)

        assert result.error.kind == ErrorKind.NOT_FOUND
        dao.increment_clicks.assert_not_called()

    @freeze_time(NOW)
    def test_expired_record_is_not_redirected_or_counted(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.return_value = stored(expires_at=NOW - timedelta(seconds=1))

        result = service.resolve('abc123')

        assert result.error.kind == ErrorKind.EXPIRED
        dao.increment_clicks.assert_not_called()

    @freeze_time(NOW)
    def test_record_expiring_now_still_resolves(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.return_value = stored(expires_at=NOW)
        assert service.resolve('abc123').ok

    def test_click_increment_failure_does_not_block_redirect(
        self, service: ShortenerService, dao: UrlRecordBaseDAO, caplog: pytest.LogCaptureFixture
    ):
        dao.find_by_code.return_value = stored()
        dao.increment_clicks.side_effect = DataStoreError('down')

        with caplog.at_level(logging.WARNING, logger='urlshortener.service'):
            result = service.resolve('abc123')

        assert result.value == 'https://example.com'
        assert 'Failed to record click.' in caplog.text

    def test_record_swept_before_increment(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.return_value = stored()
        dao.increment_clicks.return_value = False
        assert service.resolve('abc123').value == 'https://example.com'

    def test_click_tracking_disabled(self, dao: UrlRecordBaseDAO):
        dao.find_by_code.return_value = stored()
        service = ShortenerService(dao, ShortenerConfig(track_clicks=False))

        assert service.resolve('abc123').ok
        dao.increment_clicks.assert_not_called()

    def test_lookup_failure_is_store_unavailable(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.side_effect = DataStoreError('down')
        assert service.resolve('abc123').error.kind == ErrorKind.STORE_UNAVAILABLE


# -------------------------------
# 3. get_record() / get_analytics()
# -------------------------------


class TestRecordLookup:
    @freeze_time(NOW)
    def test_get_record_ignores_expiry_and_never_counts(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        record = stored(expires_at=NOW - timedelta(days=1))
        dao.find_by_code.return_value = record

        result = service.get_record('abc123')

        assert result.value is record
        dao.increment_clicks.assert_not_called()

    def test_get_record_missing(self, service: ShortenerService):
        assert service.get_record('missing').error.kind == ErrorKind.NOT_FOUND

    @freeze_time(NOW)
    def test_get_analytics(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_alias.return_value = stored('my-link', alias='my-link', clicks=3, expires_at=NOW - timedelta(seconds=1))

        result = service.get_analytics('my-link')

        assert isinstance(result.value, LinkAnalytics)
        assert result.value.clicks == 3
        assert result.value.is_expired is True
        assert result.value.alias == 'my-link'

    def test_get_analytics_missing(self, service: ShortenerService):
        assert service.get_analytics('missing').error.kind == ErrorKind.NOT_FOUND

    def test_get_analytics_store_failure(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.find_by_code.side_effect = DataStoreError('down')
        assert service.get_analytics('abc123').error.kind == ErrorKind.STORE_UNAVAILABLE


# -------------------------------
# 4. cleanup()
# -------------------------------


class TestCleanup:
    @freeze_time(NOW)
    def test_cleanup_sweeps_with_current_time(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.delete_expired.return_value = 3

        result = service.cleanup()

        assert result.value == 3
        dao.delete_expired.assert_called_once_with(NOW)

    def test_cleanup_store_failure(self, service: ShortenerService, dao: UrlRecordBaseDAO):
        dao.delete_expired.side_effect = DataStoreError('down')
        assert service.cleanup().error.kind == ErrorKind.STORE_UNAVAILABLE


# -------------------------------
# 5. End-to-end scenarios
# -------------------------------


@pytest.fixture(params=['sql', 'redis'])
def store_service(request: pytest.FixtureRequest, tmp_path: Path) -> ShortenerService:
    """Service on a real store: SQLite file or an in-process fake Redis server."""
    if request.param == 'sql':
        dao = UrlRecordSQLDAO(database_url=f'sqlite:///{tmp_path / "links.db"}')
        yield ShortenerService(dao, ShortenerConfig())
        dao.connector.close()
    else:
        client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
        yield ShortenerService(UrlRecordRedisDAO(redis_client=client, prefix='urlshortener:test'), ShortenerConfig())


class TestScenarios:
    def test_shorten_bare_domain(self, store_service: ShortenerService):
        result = store_service.shorten('example.com')

        assert result.ok
        assert result.value.target == 'http://example.com'
        assert len(result.value.code) >= 6
        assert store_service.resolve(result.value.code).value == 'http://example.com'

    def test_shorten_javascript_url(self, store_service: ShortenerService):
        assert store_service.shorten('javascript:alert(1)').error.kind == ErrorKind.INVALID_URL

    def test_alias_taken(self, store_service: ShortenerService):
        assert store_service.shorten('https://x.com', alias='my-link').ok

        result = store_service.shorten('https://y.com', alias='my-link')

        assert result.error.kind == ErrorKind.ALIAS_TAKEN
        assert store_service.resolve('my-link').value == 'https://x.com'

    def test_expiry(self, store_service: ShortenerService):
        with freeze_time(NOW) as frozen:
            code = store_service.shorten('https://x.com', expires_at=NOW + timedelta(seconds=1)).value.code
            frozen.tick(timedelta(seconds=2))

            assert store_service.resolve(code).error.kind == ErrorKind.EXPIRED
            analytics = store_service.get_analytics(code).value
            assert analytics.is_expired is True
            assert analytics.clicks == 0

            assert store_service.cleanup().value == 1
            assert store_service.get_record(code).error.kind == ErrorKind.NOT_FOUND

    def test_clicks_accumulate(self, store_service: ShortenerService):
        code = store_service.shorten('https://x.com', alias='counted').value.code

        for _ in range(3):
            assert store_service.resolve(code).ok

        assert store_service.get_analytics('counted').value.clicks == 3

    @pytest.mark.parametrize('alias', ['counter', 'expiry', 'meta', 'links', 'aliases'])
    def test_store_key_names_are_ordinary_aliases(self, store_service: ShortenerService, alias: str):
        assert store_service.shorten('https://example.com').ok
        assert store_service.resolve(alias).error.kind == ErrorKind.NOT_FOUND

        result = store_service.shorten('https://example.com/mine', alias=alias)

        assert result.ok
        assert store_service.resolve(alias).value == 'https://example.com/mine'

    def test_expiring_links_after_alias_named_expiry(self, store_service: ShortenerService):
        with freeze_time(NOW) as frozen:
            assert store_service.shorten('https://a.com', alias='expiry').ok
            expiring = store_service.shorten('https://b.com', expires_at=NOW + timedelta(hours=1))
            assert expiring.ok

            frozen.tick(timedelta(hours=2))

            assert store_service.cleanup().value == 1
            assert store_service.get_record(expiring.value.code).error.kind == ErrorKind.NOT_FOUND
            assert store_service.resolve('expiry').value == 'https://a.com'


class TestRedisStoreErrors:
    @pytest.fixture
    def client(self) -> fakeredis.FakeRedis:
        return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)

    @pytest.fixture
    def redis_service(self, client: fakeredis.FakeRedis) -> ShortenerService:
        return ShortenerService(UrlRecordRedisDAO(redis_client=client, prefix='urlshortener:test'), ShortenerConfig())

    def test_wrong_key_type_is_store_unavailable(self, redis_service: ShortenerService, client: fakeredis.FakeRedis):
        client.set('urlshortener:test:links:abc123', 'not-a-hash')

        assert redis_service.resolve('abc123').error.kind == ErrorKind.STORE_UNAVAILABLE
        assert redis_service.shorten('https://example.com', alias='abc123').error.kind == ErrorKind.ALIAS_TAKEN

    def test_response_error_from_store_is_a_value(self, redis_service: ShortenerService, monkeypatch: pytest.MonkeyPatch):
        def fail(*args, **kwargs):
            raise redis.exceptions.ResponseError('ERR Error running script')

        monkeypatch.setattr(redis_service.dao.redis, 'zrangebyscore', fail)
        monkeypatch.setattr(redis_service.dao.redis, 'incr', fail)

        assert redis_service.cleanup().error.kind == ErrorKind.STORE_UNAVAILABLE
        assert redis_service.shorten('https://example.com').error.kind == ErrorKind.STORE_UNAVAILABLE


class TestSqlConcurrency:
    @pytest.fixture
    def sql_service(self, tmp_path: Path) -> ShortenerService:
        dao = UrlRecordSQLDAO(database_url=f'sqlite:///{tmp_path / "links.db"}')
        yield ShortenerService(dao, ShortenerConfig())
        dao.connector.close()

    def test_clicks_count_every_resolution(self, sql_service: ShortenerService):
        code = sql_service.shorten('https://x.com').value.code
        other = sql_service.shorten('https://y.com').value.code

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(sql_service.resolve, [code] * 20 + [other] * 10))

        assert all(result.ok for result in results)
        assert sql_service.get_analytics(code).value.clicks == 20
        assert sql_service.get_analytics(other).value.clicks == 10

    def test_concurrent_shorten_never_shares_a_code(self, sql_service: ShortenerService):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda n: sql_service.shorten(f'https://example.com/{n}'), range(40)))

        codes = [result.value.code for result in results]
        assert len(set(codes)) == 40


# -------------------------------
# 6. create_dao()
# -------------------------------


def test_create_dao_sql_backend(tmp_path: Path):
    dao = create_dao(ShortenerConfig(backend='sql', database_url=f'sqlite:///{tmp_path / "links.db"}'))

    assert isinstance(dao, UrlRecordSQLDAO)
    assert dao.next_id() == 1
    dao.connector.close()


def test_create_dao_redis_backend(monkeypatch: pytest.MonkeyPatch):
    redis_dao = MagicMock()
    factory = MagicMock(return_value=redis_dao)
    monkeypatch.setattr('urlshortener.dao.redis.UrlRecordRedisDAO', factory)

    config = ShortenerConfig(redis_host='redis.internal', key_prefix='urlshortener:test')
    service = ShortenerService.from_config(config)

    assert service.dao is redis_dao
    assert service.config is config
    factory.assert_called_once_with(
        redis_host='redis.internal',
        redis_port=6379,
        redis_db=0,
        redis_username=None,
        redis_password=None,
        prefix='urlshortener:test',
    )
