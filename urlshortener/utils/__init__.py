from urlshortener.utils.helpers import get_short_url, guarantee_500_response
from urlshortener.utils.logging import initialize_logging
from urlshortener.utils.runtime import running_locally


__all__ = [
    'get_short_url',
    'guarantee_500_response',
    'initialize_logging',
    'running_locally',
]
