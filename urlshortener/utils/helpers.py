"""Helper utilities for AWS lambda functions.

Functions:
    get_short_url() -> str
        Get string representation of short URL for a given shortcode
    guarantee_500_response(handler) -> Callable
        Decorator: Turn unexpected handler exceptions into a 500 JSON response

Example:
    >>> get_short_url('abc123', 'https://sho.rt/')
    'https://sho.rt/abc123'
"""

import json
import logging
import functools

from urlshortener.constants import UNKNOWN_INTERNAL_SERVER_ERROR
from urlshortener.types import LambdaContext, LambdaEvent, LambdaResponse
from urlshortener.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def get_short_url(shortcode: str, base_url: str) -> str:
    """Get string representation of shortened URL

    Args:
        shortcode (str): shortcode or custom alias
        base_url (str): public base URL of the redirect service

    Returns:
        str: short url string representation
    """
    return f'{base_url.rstrip("/")}/{shortcode}'


def guarantee_500_response[F](handler: F) -> F:
    """Decorator: respond with 500 when a lambda handler raises unexpectedly.

    When running locally the original exception is re-raised instead, so the
    stack trace reaches the developer.
    """

    @functools.wraps(handler)
    def wrapper(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception(
                'Unhandled exception in lambda handler. Responding with 500.',
                extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR},
            )
            return {
                'statusCode': 500,
                'body': json.dumps(
                    {
                        'message': 'Internal Server Error',
                        'error_code': UNKNOWN_INTERNAL_SERVER_ERROR,
                    }
                ),
            }

    return wrapper
