import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for storing URL records.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "urlshortener:prod" or "urlshortener:dev".

    Keys:
        links:<code>        hash holding one UrlRecord
        aliases:<alias>     string pointing at the code of an aliased record
        meta:counter        global sequence (INCR)
        meta:expiry         sorted set of codes scored by expiry timestamp

    Internal keys live under 'meta:' so that no alias can ever name them.
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def link_key(self, code: str) -> str:
        return f'links:{code}'

    @prefix_key
    def alias_key(self, alias: str) -> str:
        return f'aliases:{alias}'

    @prefix_key
    def counter_key(self) -> str:
        return 'meta:counter'

    @prefix_key
    def expiry_index_key(self) -> str:
        return 'meta:expiry'
