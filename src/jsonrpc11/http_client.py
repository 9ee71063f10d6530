"""HTTP client for JSON-RPC 1.1."""

import logging
import re
import threading
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple
from urllib.parse import quote, urlparse

from .encoding import encode_query, get_codec, media_type
from .errors import NotAService, ServiceError, ServiceReturnsJunk
from .transport import Endpoint, HttpTransport, Transport, TransportResponse
from .types import MIME_TYPE_JSON, SYSTEM_DESCRIBE

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Python JSON-RPC Client 1.1"


class HttpClient:
    """
    HTTP client for a JSON-RPC 1.1 service.

    On the first call the client fetches ``system.describe`` and from then on
    calls procedures declared idempotent with GET, everything else with POST.
    """

    def __init__(
        self,
        url: str,
        proxy: Optional[str] = None,
        no_auto_config: bool = False,
        transport: Optional[Transport] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: Optional[float] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            url: Base URL of the service, e.g. "http://10.0.0.5:8080/services"
            proxy: Optional HTTP proxy URL, e.g. "http://10.0.0.1:3128"
            no_auto_config: Never fetch system.describe; use POST for every call.
                Useful with servers that do not implement system.describe
            transport: Transport to send requests with (HttpTransport by default)
            user_agent: Value of the User-Agent header
            timeout: Socket timeout for the default transport
        """
        self.url = url
        self.no_auto_config = no_auto_config
        self.user_agent = user_agent
        self._codec = get_codec()
        self._transport = transport or HttpTransport(timeout)
        self._lock = threading.Lock()

        # Parse URL
        parsed = urlparse(url)
        scheme = parsed.scheme or "http"
        self._path = parsed.path.rstrip("/")
        self._endpoint = Endpoint(
            host=parsed.hostname or "localhost",
            port=parsed.port or (443 if scheme == "https" else 80),
            scheme=scheme,
        ).with_proxy(proxy)

        # Filled in by system_describe()
        self._description: Optional[dict] = None
        self._procs: Dict[str, dict] = {}
        self._get_procs: FrozenSet[str] = frozenset()

    # Accessors

    @property
    def service_path(self) -> str:
        """The base path of the service, e.g. "/services"."""
        return self._path

    @property
    def host_and_port(self) -> str:
        return self._endpoint.host_and_port

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def service_description(self) -> Optional[dict]:
        """The last fetched service description, or None."""
        return self._description

    @property
    def procs(self) -> Dict[str, dict]:
        """Procedure descriptions by name, from the service description."""
        with self._lock:
            return dict(self._procs)

    def set_host(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        proxy: Optional[str] = None,
    ) -> Endpoint:
        """
        Point the client at another host serving the same service.

        Arguments left as None keep their current value.
        """
        with self._lock:
            current = self._endpoint
            endpoint = Endpoint(
                host=host or current.host,
                port=port or current.port,
                scheme=current.scheme,
                proxy_host=current.proxy_host,
                proxy_port=current.proxy_port,
            )
            if proxy is not None:
                endpoint = endpoint.with_proxy(proxy)
            self._endpoint = endpoint
        logger.debug("JSON-RPC client %s rebound to %s", self.url, endpoint.host_and_port)
        return endpoint

    # Calls

    def call(
        self,
        method: str,
        *args: Any,
        callback: Optional[Callable[[Any], Any]] = None,
        **named: Any,
    ) -> Any:
        """
        Call a remote procedure.

        A single mapping as the only argument is sent as named arguments.

        Args:
            method: Procedure name
            *args: Positional arguments
            callback: Optional continuation. It receives the result on success
                and the fault on failure; its return value is returned and the
                fault is not raised
            **named: Named arguments

        Returns:
            The call result, or the callback's return value

        Raises:
            ClientError: On any failure, when no callback is given
        """
        try:
            result = self._invoke(method, args, named)
        except Exception as e:
            if callback is None:
                raise
            logger.debug("JSON-RPC call %s failed, handing %r to callback", method, e)
            return callback(e)
        if callback is None:
            return result
        return callback(result)

    def system_describe(self) -> dict:
        """
        Fetch the service description and learn which procedures are idempotent.

        Raises:
            ServiceReturnsJunk: If the description is not usable
        """
        description = self._invoke(SYSTEM_DESCRIBE, (), {})
        if not isinstance(description, dict) or not isinstance(description.get("procs"), list):
            raise ServiceReturnsJunk(
                "JSON-RPC server failed to return a standard-compliant service description"
            )

        procs = {
            p["name"]: p
            for p in description["procs"]
            if isinstance(p, dict) and isinstance(p.get("name"), str)
        }
        get_procs = frozenset(name for name, p in procs.items() if p.get("idempotent"))

        with self._lock:
            self._procs = procs
            self._get_procs = get_procs
            self._description = description
        return description

    def _invoke(self, method: str, args: Tuple[Any, ...], named: Mapping[str, Any]) -> Any:
        if method != SYSTEM_DESCRIBE and not self.no_auto_config and self._description is None:
            self.system_describe()

        with self._lock:
            endpoint = self._endpoint
            is_get = method in self._get_procs
            proc = self._procs.get(method)

        logger.debug("JSON-RPC call: %s.%s(%r, %r)", self.url, method, args, named)
        headers = {"User-Agent": self.user_agent, "Accept": MIME_TYPE_JSON}

        if is_get:
            path = self._get_path(method, proc, args, named)
            logger.debug("JSON-RPC GET request to %s%s", endpoint.host_and_port, path)
            response = self._transport.send(endpoint, "GET", path, headers)
        else:
            path = self._path or "/"
            headers["Content-Type"] = MIME_TYPE_JSON
            body = self._codec.marshal_request(method, self._post_params(args, named))
            logger.debug("JSON-RPC POST request to %s%s with body %s", endpoint.host_and_port, path, body)
            response = self._transport.send(endpoint, "POST", path, headers, body)

        result = self._decode(response)
        logger.debug("JSON-RPC result: %s => %r", method, result)
        return result

    def _get_path(
        self,
        method: str,
        proc: Optional[dict],
        args: Tuple[Any, ...],
        named: Mapping[str, Any],
    ) -> str:
        """Build the GET path; arguments travel in the query string."""
        if len(args) == 1 and isinstance(args[0], Mapping) and not named:
            # A lone mapping is applied as named arguments
            pairs = list(args[0].items())
        else:
            declared = [p.get("name") for p in (proc or {}).get("params") or []]
            pairs = []
            for i, value in enumerate(args):
                # Arguments beyond the declared list, and every positional
                # argument of a mixed call, go by index
                if named or i >= len(declared) or not declared[i]:
                    key = str(i)
                else:
                    key = declared[i]
                pairs.append((key, value))
            pairs.extend(named.items())

        query = encode_query(pairs)
        path = f"{self._path}/{quote(method, safe='.')}"
        return f"{path}?{query}" if query else path

    def _post_params(self, args: Tuple[Any, ...], named: Mapping[str, Any]) -> Any:
        if named:
            # Mixed calls use the numbered form for the positional part
            params = {str(i): value for i, value in enumerate(args)}
            params.update(named)
            return params
        if len(args) == 1 and isinstance(args[0], Mapping):
            return dict(args[0])
        return list(args)

    def _decode(self, response: TransportResponse) -> Any:
        """Turn a response into a result, or raise the matching fault."""
        if media_type(response.content_type) != MIME_TYPE_JSON:
            logger.debug("JSON-RPC server returned non-JSON data: %r", response.body)
            raise NotAService(
                f"Returned {response.content_type} (status code {response.status}: "
                f"{response.reason}) rather than application/json"
            )

        try:
            data = self._codec.unmarshal(response.body)
        except ValueError as e:
            raise ServiceReturnsJunk(f"Response did not parse as JSON ({e})") from e
        if not isinstance(data, dict):
            raise ServiceReturnsJunk(f"Response is not a JSON object ({data!r})")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise ServiceError(error.get("code"), error.get("message"))
            raise ServiceError(None, str(error))
        return data.get("result")


class ServiceStub:
    """Base class for stubs built by generate_stub()."""

    def __init__(self, client: HttpClient):
        self.client = client

    def __repr__(self) -> str:
        return f"<{type(self).__name__} for {self.client.url}>"


def _identifier(name: str) -> str:
    ident = re.sub(r"\W", "_", name)
    return f"_{ident}" if ident[:1].isdigit() else ident


def _stub_method(name: str, proc: dict) -> Callable[..., Any]:
    def method(self: ServiceStub, *args: Any, callback: Optional[Callable[[Any], Any]] = None, **named: Any) -> Any:
        return self.client.call(name, *args, callback=callback, **named)

    method.__name__ = _identifier(name)
    method.__doc__ = proc.get("summary")
    return method


def generate_stub(client: HttpClient) -> ServiceStub:
    """
    Build a stub object with one method per procedure in the service description.

    Dots and other non-identifier characters in procedure names become
    underscores, so ``system.describe`` is ``stub.system_describe()``.
    """
    description = client.service_description or client.system_describe()
    namespace = {
        _identifier(name): _stub_method(name, proc) for name, proc in client.procs.items()
    }
    namespace[_identifier(SYSTEM_DESCRIBE)] = _stub_method(SYSTEM_DESCRIBE, {})
    class_name = _identifier(str(description.get("name") or "Service")) + "Stub"
    return type(class_name, (ServiceStub,), namespace)(client)
