"""Data Access Object (DAO) implementation for managing URL records in a relational database

Classes:
    UrlRecordSQLDAO:
        SQLAlchemy-backed UrlRecordBaseDAO (PostgreSQL in production, SQLite in tests).

Example:
    >>> dao = UrlRecordSQLDAO(database_url='sqlite:///links.db')
    >>> record = UrlRecord(id=dao.next_id(), code='abc123', target='https://example.com')
    >>> dao.insert(record)
    UrlRecord(id=1, code='abc123', ...)
    >>> dao.increment_clicks('abc123')
    True
"""

from datetime import datetime, UTC

from beartype import beartype
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from urlshortener.models import UrlRecord
from urlshortener.dao.base import UrlRecordBaseDAO
from urlshortener.dao.exceptions import DataStoreError, DuplicateKeyError
from urlshortener.dao.sql.connector import DatabaseConnector
from urlshortener.dao.sql.helpers import handle_sqlalchemy_error
from urlshortener.dao.sql.schema import SequenceRow, UrlRecordRow, URL_SEQUENCE


def _utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way in and out; all stored values are UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_record(row: UrlRecordRow) -> UrlRecord:
    return UrlRecord(
        id=row.id,
        code=row.code,
        target=row.target,
        created_at=_utc(row.created_at),
        expires_at=_utc(row.expires_at),
        clicks=row.clicks,
        alias=row.alias,
    )


class UrlRecordSQLDAO(UrlRecordBaseDAO):
    """SQLAlchemy-based DAO for URL records.

    Atomicity:
        - next_id(): UPDATE ... SET value = value + 1 RETURNING value on one
          counter row, serialized by the database's row lock.
        - insert(): a single INSERT; UNIQUE(code)/UNIQUE(alias) violations
          raise DuplicateKeyError and roll back.
        - increment_clicks(): a single UPDATE ... SET clicks = clicks + 1.

    All methods raise DataStoreError on driver, connection or pool failures.
    """

    def __init__(
        self,
        database_url: str | None = None,
        connector: DatabaseConnector | None = None,
        create_schema: bool = True,
        **connector_kwargs,
    ):
        if connector is None:
            if database_url is None:
                raise ValueError('Either database_url or connector must be provided.')
            connector = DatabaseConnector(database_url, **connector_kwargs)

        self.connector = connector
        if not self.connector.ping():
            raise DataStoreError(f"Can't connect to database at {self.connector.safe_url}.")
        if create_schema:
            self.connector.create_schema()

    @handle_sqlalchemy_error
    def next_id(self, **kwargs) -> int:
        stmt = (
            update(SequenceRow)
            .where(SequenceRow.name == URL_SEQUENCE)
            .values(value=SequenceRow.value + 1)
            .returning(SequenceRow.value)
            .execution_options(synchronize_session=False)
        )
        with self.connector.get_session() as session:
            return int(session.execute(stmt).scalar_one())

    @handle_sqlalchemy_error
    @beartype
    def exists(self, code: str, **kwargs) -> bool:
        with self.connector.get_session() as session:
            return session.scalar(select(UrlRecordRow.id).where(UrlRecordRow.code == code).limit(1)) is not None

    @handle_sqlalchemy_error
    @beartype
    def exists_alias(self, alias: str, **kwargs) -> bool:
        with self.connector.get_session() as session:
            return session.scalar(select(UrlRecordRow.id).where(UrlRecordRow.alias == alias).limit(1)) is not None

    @handle_sqlalchemy_error
    @beartype
    def insert(self, record: UrlRecord, **kwargs) -> UrlRecord:
        row = UrlRecordRow(
            id=record.id,
            code=record.code,
            target=record.target,
            created_at=_utc(record.created_at),
            expires_at=_utc(record.expires_at),
            clicks=record.clicks,
            alias=record.alias,
        )
        try:
            with self.connector.get_session() as session:
                session.add(row)
        except IntegrityError as e:
            raise DuplicateKeyError(f"Record with code '{record.code}' or alias '{record.alias}' already exists.") from e
        return record

    @handle_sqlalchemy_error
    @beartype
    def find_by_code(self, code: str, **kwargs) -> UrlRecord | None:
        with self.connector.get_session() as session:
            row = session.scalars(select(UrlRecordRow).where(UrlRecordRow.code == code)).one_or_none()
            return None if row is None else _to_record(row)

    @handle_sqlalchemy_error
    @beartype
    def find_by_alias(self, alias: str, **kwargs) -> UrlRecord | None:
        with self.connector.get_session() as session:
            row = session.scalars(select(UrlRecordRow).where(UrlRecordRow.alias == alias)).one_or_none()
            return None if row is None else _to_record(row)

    @handle_sqlalchemy_error
    @beartype
    def increment_clicks(self, code: str, **kwargs) -> bool:
        stmt = (
            update(UrlRecordRow)
            .where(UrlRecordRow.code == code)
            .values(clicks=UrlRecordRow.clicks + 1)
            .execution_options(synchronize_session=False)
        )
        with self.connector.get_session() as session:
            return session.execute(stmt).rowcount > 0

    @handle_sqlalchemy_error
    @beartype
    def delete_expired(self, now: datetime, **kwargs) -> int:
        stmt = (
            delete(UrlRecordRow)
            .where(UrlRecordRow.expires_at.is_not(None), UrlRecordRow.expires_at < _utc(now))
            .execution_options(synchronize_session=False)
        )
        with self.connector.get_session() as session:
            return session.execute(stmt).rowcount
