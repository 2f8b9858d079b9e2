"""Runtime utilities

Functions:
    running_locally() -> bool:
        True if the application runs on a developer machine, False otherwise.

Example:
    >>> os.environ['APP_ENV'] = 'local'
    >>> running_locally()
    True
    >>> os.environ['APP_ENV'] = 'prod'
    >>> running_locally()
    False
"""

import os

from urlshortener.constants import ENV


AWS_SAM_LOCAL_ENV = 'AWS_SAM_LOCAL'


def running_locally() -> bool:
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(AWS_SAM_LOCAL_ENV) == 'true'
