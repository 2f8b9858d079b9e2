from enum import StrEnum


class Defaults:
    """Default allocation and service settings."""

    SHORT_CODE_LENGTH = 6  # Minimum length of generated short codes
    MAX_RETRY_ATTEMPTS = 5  # Allocation attempts before AllocationExhausted
    CLEANUP_INTERVAL_HOURS = 24
    BASE_URL = 'http://localhost:3000'
    BACKEND = 'redis'


class Alias:
    """Custom alias length bounds."""

    MIN_LENGTH = 3
    MAX_LENGTH = 50


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        LOG_LEVEL = 'LOG_LEVEL'
        BASE_URL = 'BASE_URL'

    class Shortener(StrEnum):
        BACKEND = 'SHORTENER_BACKEND'
        SHORT_CODE_LENGTH = 'SHORT_CODE_LENGTH'
        MAX_RETRY_ATTEMPTS = 'MAX_RETRY_ATTEMPTS'
        TRACK_CLICKS = 'TRACK_CLICKS'
        CLEANUP_INTERVAL_HOURS = 'CLEANUP_INTERVAL_HOURS'

    class Redis(StrEnum):
        HOST = 'REDIS_HOST'
        PORT = 'REDIS_PORT'
        DB = 'REDIS_DB'
        USERNAME = 'REDIS_USERNAME'
        PASSWORD = 'REDIS_PASSWORD'  # noqa: S105

    class Database(StrEnum):
        URL = 'DATABASE_URL'
        FALLBACK_URL = 'DB_URL'
        POOL_SIZE = 'DB_POOL_SIZE'
        MAX_OVERFLOW = 'DB_MAX_OVERFLOW'
        POOL_TIMEOUT = 'DB_POOL_TIMEOUT'


# Event / error codes attached to log records and HTTP error bodies
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
INVALID_REQUEST_BODY = 'INVALID_REQUEST_BODY'
INVALID_EXPIRY = 'INVALID_EXPIRY'
SHORTEN_SUCCESS = 'SHORTEN_SUCCESS'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
CLICK_NOT_RECORDED = 'CLICK_NOT_RECORDED'
CODE_COLLISION = 'CODE_COLLISION'
CLEANUP_COMPLETE = 'CLEANUP_COMPLETE'
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
