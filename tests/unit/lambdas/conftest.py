from datetime import datetime, UTC
from unittest.mock import MagicMock

import pytest

from urlshortener.config import ShortenerConfig
from urlshortener.dao.base import UrlRecordBaseDAO
from urlshortener.models import UrlRecord
from urlshortener.service import ShortenerService


@pytest.fixture
def context():
    return MagicMock()


@pytest.fixture
def base_url(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv('BASE_URL', 'https://sho.rt')
    monkeypatch.setenv('APP_ENV', 'test')
    return 'https://sho.rt'


@pytest.fixture
def record() -> UrlRecord:
    return UrlRecord(
        id=1,
        code='abc123',
        target='https://example.com/my-page',
        created_at=datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC),
    )


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
def service(dao: UrlRecordBaseDAO) -> ShortenerService:
    return ShortenerService(dao, ShortenerConfig())


@pytest.fixture
def patch_service(monkeypatch: pytest.MonkeyPatch, service: ShortenerService, base_url: str):
    """Make a handler module build `service` instead of connecting to a real store."""

    def patch(app_module) -> MagicMock:
        factory = MagicMock()
        factory.from_config.return_value = service
        monkeypatch.setattr(app_module, 'ShortenerService', factory)
        return factory

    return patch
