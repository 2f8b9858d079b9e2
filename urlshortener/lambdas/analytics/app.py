import logging

from urlshortener.config import ShortenerConfig
from urlshortener.constants import MISSING_SHORTCODE
from urlshortener.dao.exceptions import DataStoreError
from urlshortener.exceptions import ConfigurationError
from urlshortener.lambdas.responses import error_response, json_response, options_response, service_error_response
from urlshortener.service import ShortenerService
from urlshortener.types import LambdaContext, LambdaEvent, LambdaResponse
from urlshortener.utils.helpers import get_short_url, guarantee_500_response


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Return click analytics for a shortcode or custom alias.

    Expired links are still reported (with `is_expired: true`) until the
    cleanup job removes them.

    HTTP responses:
        200: code, target, clicks, created_at, is_expired, short_url,
             expires_at?, alias?
        400: Missing shortcode in path parameters
        404: Unknown shortcode
        503: Data store unavailable
    """
    if event.get('httpMethod') == 'OPTIONS':
        return options_response()

    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info('Missing "shortcode" in path. Responding with 400.', extra={'event': MISSING_SHORTCODE})
        return error_response(400, "missing 'shortcode' in path", MISSING_SHORTCODE)

    try:
        config = ShortenerConfig.from_env()
        service = ShortenerService.from_config(config)
    except ConfigurationError:
        logger.exception('Invalid application configuration. Responding with 500.')
        return error_response(500)
    except DataStoreError as e:
        logger.exception('Data store unreachable. Responding with 503.', extra={'event': e.error_code})
        return error_response(503, 'data store unavailable', e.error_code)

    result = service.get_analytics(shortcode)
    if not result.ok:
        return service_error_response(result.error)

    body = result.value.to_dict()
    body['short_url'] = get_short_url(result.value.code, config.base_url)
    return json_response(200, body)
