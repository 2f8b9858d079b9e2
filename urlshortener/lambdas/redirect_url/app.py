import logging

from urlshortener.config import ShortenerConfig
from urlshortener.constants import MISSING_SHORTCODE, REDIRECT_SUCCESS
from urlshortener.dao.exceptions import DataStoreError
from urlshortener.exceptions import ConfigurationError
from urlshortener.lambdas.responses import error_response, response_302, service_error_response
from urlshortener.service import ShortenerService
from urlshortener.types import LambdaContext, LambdaEvent, LambdaResponse
from urlshortener.utils.helpers import guarantee_500_response


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode (or custom alias) from request path
    - Step 2: Resolve it to its target URL, counting the click
    - Step 3: Redirect client to target URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: target URL destination
        400: Missing shortcode in path parameters
        404: Unknown shortcode
        410: Link expired
        503: Data store unavailable
        500: Internal server error

    Example:
        >>> event = {'pathParameters': {'shortcode': 'Gh71TC'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 1- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return error_response(400, "missing 'shortcode' in path", MISSING_SHORTCODE)

    try:
        service = ShortenerService.from_config(ShortenerConfig.from_env())
    except ConfigurationError:
        logger.exception('Invalid application configuration. Responding with 500.')
        return error_response(500)
    except DataStoreError as e:
        logger.exception('Data store unreachable. Responding with 503.', extra={'event': e.error_code})
        return error_response(503, 'data store unavailable', e.error_code)

    # 2- Resolve shortcode to target URL
    result = service.resolve(shortcode)
    if not result.ok:
        logger.info(
            'Short URL not resolved. Responding with error.',
            extra={'shortcode': shortcode, 'errorKind': str(result.error.kind)},
        )
        return service_error_response(result.error)

    # 3- Redirect client to target URL
    logger.info(
        'Redirecting client to target URL. Responding with 302.',
        extra={'shortcode': shortcode, 'event': REDIRECT_SUCCESS},
    )
    return response_302(location=result.value)
