"""Application configuration management.

The configuration is an explicit, immutable `ShortenerConfig` value built once
at process start (normally via `ShortenerConfig.from_env()`) and handed to the
store factory and the service. Nothing reads configuration lazily from global
state at request time.

Environment variables (all optional unless noted):

    APP_ENV, APP_NAME           -> key prefix '<app name>:<app env>'
    BASE_URL                    -> public base URL for rendered short URLs
    SHORTENER_BACKEND           -> 'redis' (default) or 'sql'
    SHORT_CODE_LENGTH           -> minimum generated code length (default 6)
    MAX_RETRY_ATTEMPTS          -> allocation attempt budget (default 5)
    TRACK_CLICKS                -> 'true'/'false' (default true)
    CLEANUP_INTERVAL_HOURS      -> expiry sweep period (default 24)
    REDIS_HOST, REDIS_PORT, REDIS_DB, REDIS_USERNAME, REDIS_PASSWORD
    DATABASE_URL or DB_URL      -> required when SHORTENER_BACKEND=sql
    DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT

Example:
    >>> os.environ['SHORTENER_BACKEND'] = 'sql'
    >>> os.environ['DATABASE_URL'] = 'postgresql://user:pw@db:5432/links'
    >>> config = ShortenerConfig.from_env()
    >>> config.database_url
    'postgresql+psycopg2://user:pw@db:5432/links'
"""

import os
import logging
from dataclasses import dataclass
from collections.abc import Mapping

from urlshortener.constants import Defaults, ENV
from urlshortener.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)

BACKENDS = frozenset({'redis', 'sql'})
_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})
_FALSY = frozenset({'0', 'false', 'no', 'off'})


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError as e:
        raise BadConfigurationError(f"Invalid integer value for {name}: '{value}'") from e


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None or value == '':
        return default
    if value.lower() in _TRUTHY:
        return True
    if value.lower() in _FALSY:
        return False
    raise BadConfigurationError(f"Invalid boolean value for {name}: '{value}'")


def _sqlalchemy_url(url: str | None) -> str | None:
    # Platform-style 'postgresql://' / 'postgres://' URLs carry no driver
    if url is None:
        return None
    if url.startswith('postgres://'):
        url = 'postgresql://' + url.removeprefix('postgres://')
    if url.startswith('postgresql://'):
        url = 'postgresql+psycopg2://' + url.removeprefix('postgresql://')
    return url


@dataclass(frozen=True)
class ShortenerConfig:
    """Immutable configuration for the store and the shortener service.

    Raises:
        BadConfigurationError:
            On construction, if any value is out of range or inconsistent.
    """

    backend: str = Defaults.BACKEND
    short_code_length: int = Defaults.SHORT_CODE_LENGTH
    max_retry_attempts: int = Defaults.MAX_RETRY_ATTEMPTS
    track_clicks: bool = True
    cleanup_interval_hours: int = Defaults.CLEANUP_INTERVAL_HOURS
    base_url: str = Defaults.BASE_URL
    key_prefix: str | None = None

    # Redis backend
    redis_host: str = 'localhost'
    redis_port: int = 6379
    redis_db: int = 0
    redis_username: str | None = None
    redis_password: str | None = None

    # SQL backend
    database_url: str | None = None
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600
    echo_queries: bool = False

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise BadConfigurationError(f"Unknown backend '{self.backend}' (expected one of: {', '.join(sorted(BACKENDS))}).")
        if self.short_code_length < 1:
            raise BadConfigurationError(f'Short code length must be positive (given value: {self.short_code_length}).')
        if self.max_retry_attempts < 1:
            raise BadConfigurationError(f'Max retry attempts must be positive (given value: {self.max_retry_attempts}).')
        if self.cleanup_interval_hours < 1:
            raise BadConfigurationError(f'Cleanup interval must be positive (given value: {self.cleanup_interval_hours}).')
        if self.backend == 'sql' and not self.database_url:
            raise BadConfigurationError(f"The 'sql' backend requires {ENV.Database.URL} (or {ENV.Database.FALLBACK_URL}).")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> 'ShortenerConfig':
        """Build configuration from environment variables (defaults to os.environ)."""
        env = os.environ if environ is None else environ
        name = env.get(ENV.App.APP_NAME)
        prefix = None if name is None else f"{name}:{env.get(ENV.App.APP_ENV, 'local').lower()}"

        config = cls(
            backend=env.get(ENV.Shortener.BACKEND, Defaults.BACKEND).lower(),
            short_code_length=_int(env, ENV.Shortener.SHORT_CODE_LENGTH, Defaults.SHORT_CODE_LENGTH),
            max_retry_attempts=_int(env, ENV.Shortener.MAX_RETRY_ATTEMPTS, Defaults.MAX_RETRY_ATTEMPTS),
            track_clicks=_bool(env, ENV.Shortener.TRACK_CLICKS, True),
            cleanup_interval_hours=_int(env, ENV.Shortener.CLEANUP_INTERVAL_HOURS, Defaults.CLEANUP_INTERVAL_HOURS),
            base_url=env.get(ENV.App.BASE_URL) or Defaults.BASE_URL,
            key_prefix=prefix,
            redis_host=env.get(ENV.Redis.HOST, 'localhost'),
            redis_port=_int(env, ENV.Redis.PORT, 6379),
            redis_db=_int(env, ENV.Redis.DB, 0),
            redis_username=env.get(ENV.Redis.USERNAME) or None,
            redis_password=env.get(ENV.Redis.PASSWORD) or None,
            database_url=_sqlalchemy_url(env.get(ENV.Database.URL) or env.get(ENV.Database.FALLBACK_URL)),
            pool_size=_int(env, ENV.Database.POOL_SIZE, 10),
            max_overflow=_int(env, ENV.Database.MAX_OVERFLOW, 20),
            pool_timeout=_int(env, ENV.Database.POOL_TIMEOUT, 30),
        )
        logger.debug('Loaded shortener configuration.', extra={'backend': config.backend, 'keyPrefix': config.key_prefix})
        return config

    def redis_kwargs(self) -> dict:
        """Keyword arguments accepted by RedisClientMixin."""
        return {
            'redis_host': self.redis_host,
            'redis_port': self.redis_port,
            'redis_db': self.redis_db,
            'redis_username': self.redis_username,
            'redis_password': self.redis_password,
        }
