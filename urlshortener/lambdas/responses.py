"""API Gateway proxy responses shared by the lambda handlers.

Error bodies carry a human readable `message`, the stable `errorKind` of a
service failure (when there is one) and an `errorCode` for log correlation.
"""

import json
from typing import Any

from urlshortener.exceptions import ErrorKind
from urlshortener.models import ServiceError
from urlshortener.types import LambdaResponse


CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET',
}

STATUS_BY_ERROR_KIND = {
    ErrorKind.INVALID_URL: 400,
    ErrorKind.INVALID_ALIAS: 400,
    ErrorKind.ALIAS_TAKEN: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXPIRED: 410,
    ErrorKind.ALLOCATION_EXHAUSTED: 503,
    ErrorKind.STORE_UNAVAILABLE: 503,
}

REASONS = {
    200: 'OK',
    201: 'Created',
    400: 'Bad Request',
    404: 'Not Found',
    409: 'Conflict',
    410: 'Gone',
    500: 'Internal Server Error',
    503: 'Service Unavailable',
}


def json_response(status_code: int, body: dict[str, Any]) -> LambdaResponse:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json', **CORS_HEADERS},
        'body': json.dumps(body),
    }


def error_response(status_code: int, message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    base = REASONS.get(status_code, 'Error')
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return json_response(status_code, body)


def service_error_response(error: ServiceError) -> LambdaResponse:
    """Map a service failure onto its HTTP status; unknown kinds become 500."""
    return json_response(STATUS_BY_ERROR_KIND.get(error.kind, 500), error.to_dict())


def options_response() -> LambdaResponse:
    return {
        'statusCode': 200,
        'headers': dict(CORS_HEADERS),
        'body': '',
    }


def response_302(*, location: str) -> LambdaResponse:
    return {
        'statusCode': 302,
        'headers': {'Location': location, **CORS_HEADERS},
        'body': json.dumps({}),  # no body needed for redirects
    }
