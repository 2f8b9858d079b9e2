import json
import logging

from urlshortener.config import ShortenerConfig
from urlshortener.constants import CLEANUP_COMPLETE
from urlshortener.exceptions import ShortenerError
from urlshortener.models import ServiceError
from urlshortener.service import ShortenerService
from urlshortener.types import LambdaContext, LambdaDiagnosticResponse, LambdaEvent


logger = logging.getLogger(__name__)

SUCCESS = 'success'
ERROR = 'error'


def response_success(*, removed: int) -> LambdaDiagnosticResponse:
    return json.dumps(
        {
            'status': SUCCESS,
            'removed': removed,
            'message': f'Removed {removed} expired short URL records',
        }
    )


def response_error(*, reason: str, error: str) -> LambdaDiagnosticResponse:
    return json.dumps(
        {
            'status': ERROR,
            'message': 'Failed to remove expired short URL records',
            'reason': reason,
            'error': error,
        }
    )


def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaDiagnosticResponse:
    """Sweep expired short URL records.

    Invoked by a scheduled rule every CLEANUP_INTERVAL_HOURS hours.

    Diagnostic responses (NOT valid HTTP responses):
        `success`:
            status: success
            removed: <number of deleted records>
            message: Removed <n> expired short URL records
        `error`:
            status: error
            message: Failed to remove expired short URL records
            reason: <reason>
            error: <error class name or error kind>
    """
    try:
        config = ShortenerConfig.from_env()
        service = ShortenerService.from_config(config)
    except ShortenerError as error:
        logger.exception('Failed to build shortener service.', extra={'event': ERROR, 'error': error.__class__.__name__})
        return response_error(reason=str(error), error=error.__class__.__name__)

    result = service.cleanup()
    if not result.ok:
        failure: ServiceError = result.error
        logger.error(
            'Failed to remove expired records.',
            extra={'event': ERROR, 'reason': failure.message, 'error': str(failure.kind)},
        )
        return response_error(reason=failure.message, error=str(failure.kind))

    logger.info(
        'Expired record sweep finished.',
        extra={'event': CLEANUP_COMPLETE, 'removed': result.value, 'interval_hours': config.cleanup_interval_hours},
    )
    return response_success(removed=result.value)
