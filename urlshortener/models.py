"""Value types shared by the store and the service.

Classes:
    UrlRecord:
        The single persisted entity (immutable snapshot of a stored link).

    ServiceError:
        Failure value returned by the service instead of raising.

    Result:
        Success/failure container returned by every service operation.

    LinkAnalytics:
        Read-only analytics view of a record, rendered by the analytics endpoint.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any

from urlshortener.exceptions import ErrorKind


@dataclass(frozen=True)
class UrlRecord:
    """Represent a shortened URL mapping.

    Attributes:
        id (int):
            Sequence value assigned by the store, immutable once assigned.
        code (str):
            Unique short code. For custom aliases the code *is* the alias.
        target (str):
            Normalized original URL.
        created_at (datetime):
            Creation timestamp (UTC).
        expires_at (datetime | None):
            Expiry timestamp (UTC). None means the record never expires.
        clicks (int):
            Number of successful resolutions.
        alias (str | None):
            Custom alias supplied at creation, None for generated codes.

    Example:
        >>> record = UrlRecord(id=1, code='abc123', target='https://example.com')
        >>> record.is_expired()
        False
    """
    id: int
    code: str
    target: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None
    clicks: int = 0
    alias: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """A record is expired iff it has an expiry and `now` is strictly past it."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) > self.expires_at


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {'errorKind': str(self.kind), 'message': self.message}


@dataclass(frozen=True)
class Result[T]:
    """Outcome of a service operation: exactly one of `value` / `error` is meaningful.

    Example:
        >>> Result.success('https://example.com').ok
        True
        >>> Result.failure(ErrorKind.NOT_FOUND, 'Short code not found').error.kind
        <ErrorKind.NOT_FOUND: 'NotFound'>
    """

    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> 'Result[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> 'Result[T]':
        return cls(error=ServiceError(kind=kind, message=message))


@dataclass(frozen=True)
class LinkAnalytics:
    code: str
    target: str
    clicks: int
    created_at: datetime
    expires_at: datetime | None
    is_expired: bool
    alias: str | None

    @classmethod
    def from_record(cls, record: UrlRecord, now: datetime | None = None) -> 'LinkAnalytics':
        return cls(
            code=record.code,
            target=record.target,
            clicks=record.clicks,
            created_at=record.created_at,
            expires_at=record.expires_at,
            is_expired=record.is_expired(now),
            alias=record.alias,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'code': self.code,
            'target': self.target,
            'clicks': self.clicks,
            'created_at': self.created_at.isoformat(),
            'is_expired': self.is_expired,
        }
        if self.expires_at is not None:
            data['expires_at'] = self.expires_at.isoformat()
        if self.alias is not None:
            data['alias'] = self.alias
        return data
