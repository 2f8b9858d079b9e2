import json
import logging
from datetime import datetime
from typing import Any

from urlshortener.config import ShortenerConfig
from urlshortener.constants import INVALID_EXPIRY, INVALID_REQUEST_BODY, SHORTEN_SUCCESS
from urlshortener.dao.exceptions import DataStoreError
from urlshortener.exceptions import ConfigurationError
from urlshortener.lambdas.responses import error_response, json_response, options_response, service_error_response
from urlshortener.service import ShortenerService
from urlshortener.types import LambdaContext, LambdaEvent, LambdaResponse
from urlshortener.utils.helpers import get_short_url, guarantee_500_response


logger = logging.getLogger(__name__)


def parse_expiry(value: Any) -> datetime | None:
    """Parse an ISO-8601 expiry timestamp; blank means "never expires".

    Raises:
        ValueError: If the value is not an ISO-8601 string.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ValueError(f'Expiry must be an ISO-8601 string (given type: {type(value)}).')
    return datetime.fromisoformat(value.strip())


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Extract URL, custom alias and expiry from request body
    - Step 2: Build the shortener service from environment configuration
    - Step 3: Allocate a short code and persist the record (via service)
    - Step 4: Respond to user with 201 success

    Request body:
        url: target URL (scheme defaults to http://)
        custom_alias: optional alias to use as the short code
        expires_at: optional ISO-8601 expiry timestamp (naive values are UTC)

    HTTP responses:
        201: Successful URL shortening
            message, short_url, shortcode, target_url, created_at, expires_at?
        400: Bad client request (invalid JSON, invalid URL/alias/expiry)
        409: Custom alias already taken
        503: Allocation exhausted or data store unavailable
        500: Internal server error

    Example:
        >>> event = {'body': '{"url": "https://example.com"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
    """
    if event.get('httpMethod') == 'OPTIONS':
        return options_response()

    # 1- Extract request parameters from body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_REQUEST_BODY})
        return error_response(400, 'invalid JSON body', INVALID_REQUEST_BODY)
    if not isinstance(request_body, dict):
        return error_response(400, 'JSON body must be an object', INVALID_REQUEST_BODY)

    target_url = request_body.get('url')
    if not target_url:
        logger.info("Missing 'url' in request body. Responding with 400.", extra={'event': INVALID_REQUEST_BODY})
        return error_response(400, "missing 'url' in JSON body", INVALID_REQUEST_BODY)
    custom_alias = request_body.get('custom_alias') or None

    try:
        expires_at = parse_expiry(request_body.get('expires_at'))
    except ValueError:
        logger.info('Invalid expiry timestamp. Responding with 400.', extra={'event': INVALID_EXPIRY})
        return error_response(400, 'invalid expiry, use ISO-8601 e.g. 2030-01-01T00:00:00', INVALID_EXPIRY)

    # 2- Build service from configuration
    try:
        config = ShortenerConfig.from_env()
        service = ShortenerService.from_config(config)
    except ConfigurationError:
        logger.exception('Invalid application configuration. Responding with 500.')
        return error_response(500)
    except DataStoreError as e:
        logger.exception('Data store unreachable. Responding with 503.', extra={'event': e.error_code})
        return error_response(503, 'data store unavailable', e.error_code)

    # 3- Allocate short code and persist record
    result = service.shorten(target_url, alias=custom_alias, expires_at=expires_at)
    if not result.ok:
        return service_error_response(result.error)

    # 4- Return successful response to user
    record = result.value
    short_url = get_short_url(record.code, config.base_url)
    logger.info(
        'Shortened URL. Responding with 201.',
        extra={'event': SHORTEN_SUCCESS, 'shortcode': record.code},
    )
    body = {
        'message': f'Successfully shortened {record.target} to {short_url}',
        'target_url': record.target,
        'short_url': short_url,
        'shortcode': record.code,
        'created_at': record.created_at.isoformat(),
    }
    if record.expires_at is not None:
        body['expires_at'] = record.expires_at.isoformat()
    return json_response(201, body)
