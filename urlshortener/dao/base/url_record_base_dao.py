"""Abstract base class for UrlRecord data access objects (DAOs).

This class establishes a consistent contract for all UrlRecord DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, PostgreSQL, SQLite).

Responsibilities:
    - Hand out strictly increasing, process-wide unique sequence values.
    - Persist new UrlRecord objects, enforcing code/alias uniqueness atomically.
    - Look records up by code or by alias.
    - Atomically increment click counters.
    - Sweep expired records.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from urlshortener.models import UrlRecord
        >>> from urlshortener.dao.redis import UrlRecordRedisDAO

        >>> dao = UrlRecordRedisDAO(...)

        >>> record = UrlRecord(id=dao.next_id(), code='a1b2c3', target='https://example.com/blog/article-123')
        >>> dao.insert(record)

        >>> dao.find_by_code('a1b2c3').target
        'https://example.com/blog/article-123'

        >>> dao.increment_clicks('a1b2c3')
        True
"""

from abc import ABC, abstractmethod
from datetime import datetime

from urlshortener.models import UrlRecord


class UrlRecordBaseDAO(ABC):
    """Interface for UrlRecord data access objects (DAOs).

    Every method raises DataStoreError on connection or driver failure.

    Subclassing:
        Datastore-specific implementations (e.g., UrlRecordRedisDAO or
        UrlRecordSQLDAO) must extend this class and implement all
        abstract methods.

    NOTE:
        - Uniqueness of codes and aliases must be enforced by the data store
          itself inside insert(). The exists() checks only let callers fail fast.
        - Custom-alias records use the alias as their code, so code and alias
          share one namespace.
    """

    @abstractmethod
    def next_id(self, **kwargs) -> int:
        """Return a fresh, strictly increasing sequence value.

        No two callers (threads, processes or service instances sharing the
        same data store) ever observe the same value.
        """
        pass

    @abstractmethod
    def exists(self, code: str, **kwargs) -> bool:
        """Return True if a record with the given code exists."""
        pass

    @abstractmethod
    def exists_alias(self, alias: str, **kwargs) -> bool:
        """Return True if a record with the given custom alias exists."""
        pass

    @abstractmethod
    def insert(self, record: UrlRecord, **kwargs) -> UrlRecord:
        """Persist a new UrlRecord.

        Args:
            record (UrlRecord):
                The record to persist.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            UrlRecord: the persisted record.

        Raises:
            DuplicateKeyError:
                If the code or alias already exists. Nothing is written.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def find_by_code(self, code: str, **kwargs) -> UrlRecord | None:
        """Return the record stored under `code`, None if absent."""
        pass

    @abstractmethod
    def find_by_alias(self, alias: str, **kwargs) -> UrlRecord | None:
        """Return the record created with custom alias `alias`, None if absent."""
        pass

    @abstractmethod
    def increment_clicks(self, code: str, **kwargs) -> bool:
        """Atomically increment the click counter of a record.

        Returns:
            bool: False if no record with the given code exists (nothing is created).
        """
        pass

    @abstractmethod
    def delete_expired(self, now: datetime, **kwargs) -> int:
        """Delete every record whose expiry is strictly before `now`.

        Returns:
            int: number of records removed by this call.
        """
        pass
