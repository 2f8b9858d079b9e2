from pathlib import Path

import pytest

from urlshortener.dao.sql import DatabaseConnector, UrlRecordSQLDAO


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f'sqlite:///{tmp_path / "links.db"}'


@pytest.fixture
def connector(database_url: str) -> DatabaseConnector:
    connector = DatabaseConnector(database_url)
    yield connector
    connector.close()


@pytest.fixture
def dao(connector: DatabaseConnector) -> UrlRecordSQLDAO:
    return UrlRecordSQLDAO(connector=connector)
