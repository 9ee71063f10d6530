"""Client that serves idempotent calls from an external cache."""

import json
import logging
from typing import Any, Mapping, Optional, Protocol, Tuple

from .errors import ConfigurationError
from .http_client import HttpClient
from .types import SYSTEM_DESCRIBE

logger = logging.getLogger(__name__)


class _Miss:
    def __repr__(self) -> str:
        return "CACHE_MISS"


# Default value a cache returns from get() when it has no entry
CACHE_MISS = _Miss()


class Cache(Protocol):
    """The key/value store the caching client talks to."""

    def get(self, key: str) -> Any:
        ...

    def set(self, key: str, value: Any, expires: int) -> Any:
        ...


class CachingClient(HttpClient):
    """
    HttpClient that memoizes idempotent procedures in an external cache.

    Only procedures the service description marks idempotent are cached;
    everything else, including system.describe, goes straight to the service.
    Faults are never cached.
    """

    def __init__(
        self,
        url: str,
        cache: Optional[Cache] = None,
        expires: int = 0,
        miss: Any = CACHE_MISS,
        **kwargs: Any,
    ):
        """
        Initialize caching client.

        Args:
            url: Base URL of the service
            cache: Store with get(key) and set(key, value, expires)
            expires: Expiry in seconds passed to cache.set (0 for no expiry)
            miss: The value cache.get returns for a missing key
            **kwargs: Passed on to HttpClient

        Raises:
            ConfigurationError: If no cache is given
        """
        if cache is None:
            raise ConfigurationError("Must define a cache object")
        super().__init__(url, **kwargs)
        self.cache = cache
        self.expires = expires
        self.miss = miss

    def cache_key(self, method: str, args: Tuple[Any, ...], named: Mapping[str, Any]) -> str:
        """Key for a call: service id, procedure name and the arguments."""
        service_id = (self.service_description or {}).get("id", self.url)
        arguments = json.dumps([list(args), dict(named)], sort_keys=True, default=repr)
        return f"{service_id}:{method}:{arguments}"

    def _invoke(self, method: str, args: Tuple[Any, ...], named: Mapping[str, Any]) -> Any:
        if method == SYSTEM_DESCRIBE:
            return super()._invoke(method, args, named)
        if not self.no_auto_config and self.service_description is None:
            self.system_describe()
        if method not in self._get_procs:
            return super()._invoke(method, args, named)

        key = self.cache_key(method, args, named)
        value = self.cache.get(key)
        if value is self.miss or value == self.miss:
            logger.debug("JSON-RPC cache miss for %s", key)
            value = super()._invoke(method, args, named)
            self.cache.set(key, value, self.expires)
        else:
            logger.debug("JSON-RPC cache hit for %s", key)
        return value
