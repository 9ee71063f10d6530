"""Request handler for JSON-RPC 1.1 over HTTP."""

import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from .encoding import JsonCodec, decode_query, get_codec, media_type
from .errors import (
    STATUS_NOT_FOUND,
    STATUS_SERVER_ERROR,
    STATUS_UNAVAILABLE,
    RpcError,
    internal_error,
    invalid_request_error,
    method_not_found_error,
    not_idempotent_error,
)
from .params import canonicalize_args
from .service import Service
from .types import (
    MIME_TYPE_JSON,
    TYPE_NIL,
    CallRequest,
    CallResult,
    new_error_result,
    new_result,
)

logger = logging.getLogger(__name__)


@dataclass
class TransportRequest:
    """What the inbound HTTP adapter hands to the handler.

    Attributes:
        method: HTTP method (GET, POST, ...)
        headers: Request headers; looked up case-insensitively
        query_string: Raw query string, without the leading '?'
        body: Raw request body
        route_method: Procedure name routed from the request path (GET only)
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query_string: str = ""
    body: Union[bytes, str] = b""
    route_method: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass
class HttpResponse:
    """What the handler hands back to the inbound HTTP adapter."""

    body: str
    status: int = 200
    content_type: str = MIME_TYPE_JSON


class InboundRequest:
    """
    One inbound request, from parsing to result.

    Subclasses parse the GET and POST forms. The first error recorded wins;
    once a request is erroneous, later steps are skipped.
    """

    def __init__(self, service: Service, transport: Optional[TransportRequest] = None):
        self.service = service
        self.transport = transport
        self.call = CallRequest()
        self.error: Optional[RpcError] = None
        self.status = 200
        self.result: Any = None

        # Local calls have no HTTP headers to check
        if transport is None:
            return
        if not transport.header("User-Agent"):
            self.set_error(invalid_request_error("User-Agent header not specified"))
            return
        if media_type(transport.header("Accept")) != MIME_TYPE_JSON:
            self.set_error(invalid_request_error("Accept header must be application/json"))

    @property
    def is_get(self) -> bool:
        return False

    def set_error(self, error: RpcError) -> None:
        """Associate an error with this request. Only the first one is kept."""
        if self.error is not None:
            return
        self.error = error
        self.status = error.status

    def apply(self) -> CallResult:
        """Resolve, check and invoke the procedure. Never raises."""
        if self.error is None:
            try:
                self._invoke()
            except RpcError as e:
                self.set_error(e)

        if self.error is not None:
            return new_error_result(self.error.to_dict(), self.call.id, self.status)
        return new_result(self.result, self.call.id)

    def _invoke(self) -> None:
        method = self.call.method
        proc = self.service.lookup(method)
        if proc is None:
            raise method_not_found_error(
                method, status=STATUS_NOT_FOUND if self.is_get else STATUS_SERVER_ERROR
            )
        if self.is_get and not proc.idempotent:
            raise not_idempotent_error()

        args = canonicalize_args(proc.params, self.call)

        try:
            result = proc.handler(*args)
        except Exception as e:
            logger.exception("JSON-RPC procedure %s raised", method)
            raise internal_error(f"{e}\n{''.join(traceback.format_tb(e.__traceback__))}")

        # A nil return type suppresses whatever the procedure produced
        self.result = None if proc.returns.type == TYPE_NIL else result


class GetRequest(InboundRequest):
    """A GET call: method from the route, named arguments from the query string.

    Empty and false-looking values are kept as they are; no suppression is
    done for GET requests.
    """

    def __init__(self, service: Service, transport: TransportRequest):
        super().__init__(service, transport)
        if self.error is not None:
            return
        if not transport.route_method:
            self.set_error(invalid_request_error("Bad call"))
            return
        self.call.method = transport.route_method
        self.call.named = decode_query(transport.query_string)

    @property
    def is_get(self) -> bool:
        return True


class PostRequest(InboundRequest):
    """A POST call: everything comes from the JSON body."""

    def __init__(self, service: Service, transport: TransportRequest, codec: JsonCodec):
        super().__init__(service, transport)
        if self.error is not None:
            return
        if media_type(transport.header("Content-Type")) != MIME_TYPE_JSON:
            self.set_error(invalid_request_error("Content-Type header must be application/json"))
            return

        try:
            body = codec.unmarshal(transport.body or b"")
        except ValueError:
            self.set_error(invalid_request_error("JSON did not parse"))
            return

        if not isinstance(body, dict):
            self.set_error(invalid_request_error("JSON-RPC request must be a JSON object"))
            return
        if not body.get("version"):
            self.set_error(
                invalid_request_error("JSON-RPC client protocol version must be specified in POSTs")
            )
            return

        self.call.id = body.get("id")
        self.call.method = body.get("method")
        if not self.call.method:
            self.set_error(invalid_request_error("Method not specified"))
            return

        params = body.get("params")
        if isinstance(params, list):
            self.call.positional = params
        elif isinstance(params, dict):
            self.call.named = params
        elif params is not None:
            self.set_error(invalid_request_error("Params must be JSON Object or Array"))


class ErroneousRequest(InboundRequest):
    """A request that is neither GET nor POST."""

    def __init__(self, service: Service, transport: TransportRequest, error: RpcError):
        super().__init__(service, transport)
        self.set_error(error)


def create_request(
    service: Service,
    transport: TransportRequest,
    codec: Optional[JsonCodec] = None,
) -> InboundRequest:
    """Classify a transport request as a GET, a POST, or an erroneous request."""
    verb = (transport.method or "").upper()
    if verb == "GET":
        return GetRequest(service, transport)
    if verb == "POST":
        return PostRequest(service, transport, codec or get_codec())
    return ErroneousRequest(service, transport, invalid_request_error("Only POST and GET supported"))


class Handler:
    """Handles JSON-RPC 1.1 requests for one service."""

    def __init__(self, service: Service, codec: Optional[JsonCodec] = None):
        """
        Initialize handler.

        Args:
            service: The service whose procedures are dispatched
            codec: Codec used for request and response bodies
        """
        self.service = service
        self.codec = codec or get_codec()

    def handle(self, transport: TransportRequest) -> HttpResponse:
        """
        Handle a single HTTP request.

        Args:
            transport: The request as delivered by the HTTP adapter

        Returns:
            The response body and status for the adapter to write back
        """
        if self.service.disabled:
            return HttpResponse("JSON-RPC server disabled", STATUS_UNAVAILABLE, "text/plain")

        request = create_request(self.service, transport, self.codec)
        result = request.apply()
        logger.debug(
            "JSON-RPC %s %s -> %s",
            transport.method,
            request.call.method,
            result.status,
        )
        return self.marshal(result)

    def call(self, method: str, *args: Any, **named: Any) -> CallResult:
        """
        Dispatch a call locally, bypassing HTTP but not canonicalization.

        Args:
            method: Procedure name
            *args: Positional arguments
            **named: Named arguments

        Returns:
            The call result
        """
        request = InboundRequest(self.service)
        request.call = CallRequest(method=method, positional=list(args), named=dict(named))
        return request.apply()

    def marshal(self, result: CallResult) -> HttpResponse:
        """Encode a result, turning an unencodable value into an error."""
        try:
            return HttpResponse(self.codec.marshal_response(result), result.status)
        except (TypeError, ValueError) as e:
            logger.error("JSON-RPC result could not be encoded: %s", e)
            error = internal_error(f"Result could not be encoded as JSON: {e}")
            failed = new_error_result(error.to_dict(), result.id, error.status)
            return HttpResponse(self.codec.marshal_response(failed), failed.status)
