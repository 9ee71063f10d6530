"""Outbound HTTP transport for the JSON-RPC client."""

import http.client
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol
from urllib.parse import urlparse

from .errors import ServiceDown

logger = logging.getLogger(__name__)


@dataclass
class Endpoint:
    """Where requests go: the service host and an optional HTTP proxy."""

    host: str
    port: int
    scheme: str = "http"
    proxy_host: Optional[str] = None
    proxy_port: Optional[int] = None

    @property
    def host_and_port(self) -> str:
        return f"{self.host}:{self.port}"

    def with_proxy(self, proxy: Optional[str]) -> "Endpoint":
        """Return a copy routed through the given proxy URL (None removes it)."""
        if proxy is None:
            return Endpoint(self.host, self.port, self.scheme)
        parsed = urlparse(proxy)
        return Endpoint(
            self.host,
            self.port,
            self.scheme,
            proxy_host=parsed.hostname,
            proxy_port=parsed.port or 8080,
        )


@dataclass
class TransportResponse:
    """A received HTTP response."""

    status: int
    reason: str
    content_type: Optional[str]
    body: bytes


class Transport(Protocol):
    """Blocking request/response exchange with an HTTP server."""

    def send(
        self,
        endpoint: Endpoint,
        method: str,
        path: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        ...


class HttpTransport:
    """Transport using http.client, one connection per request."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize HTTP transport.

        Args:
            timeout: Socket timeout in seconds (None for the global default)
        """
        self.timeout = timeout

    def send(
        self,
        endpoint: Endpoint,
        method: str,
        path: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> TransportResponse:
        """
        Send a request and wait for the response.

        Raises:
            ServiceDown: If the server (or proxy) cannot be reached
        """
        conn = self._connect(endpoint)
        target = path
        if endpoint.proxy_host and endpoint.scheme != "https":
            # Plain HTTP proxies expect the absolute URI
            target = f"{endpoint.scheme}://{endpoint.host_and_port}{path}"

        try:
            conn.request(method, target, body, headers)
            response = conn.getresponse()
            resp_body = response.read()
            return TransportResponse(
                status=response.status,
                reason=response.reason,
                content_type=response.getheader("Content-Type"),
                body=resp_body,
            )
        except ConnectionRefusedError:
            logger.debug("Connection to %s refused", endpoint.host_and_port)
            raise ServiceDown("Connection refused")
        except OSError as e:
            logger.debug("Connection to %s failed: %s", endpoint.host_and_port, e)
            raise ServiceDown(f"Cannot reach {endpoint.host_and_port} ({e})")
        finally:
            conn.close()

    def _connect(self, endpoint: Endpoint) -> http.client.HTTPConnection:
        host, port = endpoint.host, endpoint.port
        if endpoint.proxy_host:
            host, port = endpoint.proxy_host, endpoint.proxy_port

        if endpoint.scheme == "https":
            conn = http.client.HTTPSConnection(host, port, timeout=self.timeout)
            if endpoint.proxy_host:
                conn.set_tunnel(endpoint.host, endpoint.port)
            return conn
        return http.client.HTTPConnection(host, port, timeout=self.timeout)
