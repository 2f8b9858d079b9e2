from urlshortener.config import ShortenerConfig
from urlshortener.models import LinkAnalytics, Result, ServiceError, UrlRecord
from urlshortener.service import ShortenerService, create_dao


__all__ = [
    'ShortenerConfig',
    'ShortenerService',
    'create_dao',
    'UrlRecord',
    'Result',
    'ServiceError',
    'LinkAnalytics',
]
