"""Pooled SQLAlchemy engine and session management for the SQL backend.

Every DAO operation checks one connection out of the engine's pool through
`get_session()` and returns it on completion, so concurrent callers never
share a connection.

Example:
    >>> connector = DatabaseConnector('postgresql+psycopg2://user:pw@db:5432/links')
    >>> connector.create_schema()
    >>> with connector.get_session() as session:
    ...     session.execute(text('SELECT 1'))
"""

import logging
from contextlib import contextmanager
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from urlshortener.dao.exceptions import DataStoreError
from urlshortener.dao.sql.schema import Base, SequenceRow, URL_SEQUENCE


logger = logging.getLogger(__name__)


class DatabaseConnector:
    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        echo: bool = False,
    ):
        engine_kwargs = {'echo': echo, 'pool_pre_ping': True}
        if url.startswith('sqlite'):
            # SQLite picks its own pool class; connections may cross threads
            engine_kwargs['connect_args'] = {'check_same_thread': False}
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
            )

        try:
            self._engine: Engine = create_engine(url, **engine_kwargs)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            raise DataStoreError(f"Can't create database engine for {url.split('@')[-1]}.") from e

        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info('Database engine created.', extra={'dialect': self._engine.dialect.name})

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def safe_url(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create tables (if missing) and seed the URL sequence counter row."""
        try:
            Base.metadata.create_all(self._engine)
            with self.get_session() as session:
                if session.get(SequenceRow, URL_SEQUENCE) is None:
                    session.add(SequenceRow(name=URL_SEQUENCE, value=0))
        except IntegrityError:
            # Another process seeded the counter first
            logger.debug('URL sequence already seeded.')
        except SQLAlchemyError as e:
            raise DataStoreError(f"Can't initialize database schema on {self.safe_url}.") from e

    def ping(self) -> bool:
        """Run SELECT 1 on a pooled connection; False when the database is unreachable."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError:
            logger.exception('Database ping failed.')
            return False

    def close(self) -> None:
        self._engine.dispose()
        logger.info('Database engine disposed.')
