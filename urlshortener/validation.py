"""URL and custom alias validation

Functions:
    normalize_url(url) -> str | None
        Trim whitespace and prepend 'http://' when no http(s) scheme is present.
    is_valid_url(url) -> bool
        Check a (raw or normalized) URL against syntax and safety rules.
    is_valid_hostname(hostname) -> bool
        Accept 'localhost', dotted-quad IPv4 literals and dotted DNS names.
    is_valid_alias(alias) -> bool
        Check a custom alias against ^[A-Za-z0-9_-]{3,50}$ (after trimming).

Example:
    >>> normalize_url('  example.com ')
    'http://example.com'
    >>> is_valid_url('example.com')
    True
    >>> is_valid_url('javascript:alert(1)')
    False
"""

import re
import urllib.parse

from urlshortener.constants import Alias


ALLOWED_SCHEMES = frozenset({'http', 'https'})

_SCHEME_PREFIX = re.compile(r'^https?://', re.IGNORECASE)
_FORBIDDEN_SCHEMES = re.compile(r'^(javascript|data|file):', re.IGNORECASE)
# Characters a well-formed URI never carries unescaped
_ILLEGAL_URI_CHARS = re.compile(r'[\s<>"{}|\\^`]')
_IPV4 = re.compile(r'^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$')
_HOST_LABEL = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$')
_ALIAS = re.compile(rf'^[A-Za-z0-9_-]{{{Alias.MIN_LENGTH},{Alias.MAX_LENGTH}}}$')


def normalize_url(url: str | None) -> str | None:
    """Trim a URL and default its scheme to http.

    None and blank strings are returned unchanged.

    Example:
        >>> normalize_url('https://example.com')
        'https://example.com'
        >>> normalize_url('www.example.com')
        'http://www.example.com'
    """
    if url is None or not url.strip():
        return url

    url = url.strip()
    if not _SCHEME_PREFIX.match(url):
        url = f'http://{url}'
    return url


def is_valid_hostname(hostname: str | None) -> bool:
    if not hostname or not hostname.strip():
        return False
    if hostname == 'localhost' or _IPV4.match(hostname):
        return True
    if '.' not in hostname:
        return False
    return all(_HOST_LABEL.match(label) for label in hostname.split('.'))


def is_valid_url(url: str | None) -> bool:
    """Validate a target URL.

    Rules:
        - Forbidden scheme prefixes (javascript:, data:, file:) are rejected on
          the raw input, before the http:// default is applied.
        - The normalized URL must parse, use the http or https scheme and
          contain no characters illegal in a URI.
        - The host must be 'localhost', an IPv4 literal or a dotted DNS name
          with 1-63 character alphanumeric/hyphen labels.

    Never raises: any parse failure yields False.
    """
    if url is None or not url.strip():
        return False

    raw = url.strip()
    if _FORBIDDEN_SCHEMES.match(raw):
        return False

    normalized = normalize_url(raw)
    if _ILLEGAL_URI_CHARS.search(normalized) or _FORBIDDEN_SCHEMES.match(normalized):
        return False

    try:
        components = urllib.parse.urlsplit(normalized)
        hostname = components.hostname
        components.port  # raises ValueError on a malformed port
    except ValueError:
        return False

    if components.scheme.lower() not in ALLOWED_SCHEMES:
        return False
    return is_valid_hostname(hostname)


def is_valid_alias(alias: str | None) -> bool:
    """Example:
    >>> is_valid_alias('my-link')
    True
    >>> is_valid_alias('ab')
    False
    """
    if alias is None or not alias.strip():
        return False
    return _ALIAS.match(alias.strip()) is not None
