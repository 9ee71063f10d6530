"""JSON-RPC 1.1 over HTTP Python implementation."""

__version__ = "0.1.0"

# Core types
from .types import (
    VERSION_11,
    SD_VERSION,
    MIME_TYPE_JSON,
    SYSTEM_DESCRIBE,
    TYPE_ANY,
    TYPE_BIT,
    TYPE_NUM,
    TYPE_STR,
    TYPE_ARR,
    TYPE_OBJ,
    TYPE_NIL,
    ParameterSpec,
    ReturnSpec,
    ProcedureDescription,
    CallRequest,
    CallResult,
    json_type_of,
    new_result,
    new_error_result,
)

# Errors
from .errors import (
    RpcError,
    ConfigurationError,
    ClientError,
    ServiceDown,
    NotAService,
    ServiceReturnsJunk,
    ServiceError,
    CODE_JSONRPC_ERROR,
    invalid_request_error,
    method_not_found_error,
    not_idempotent_error,
    invalid_params_error,
    internal_error,
)

# Encoding
from .encoding import JsonCodec, get_codec, decode_query, encode_query

# Service and arguments
from .service import Service
from .params import canonicalize_args, check_type

# Handler
from .handler import (
    Handler,
    TransportRequest,
    HttpResponse,
    GetRequest,
    PostRequest,
    ErroneousRequest,
    create_request,
)

# Transports
from .transport import Endpoint, HttpTransport, Transport, TransportResponse
from .http_client import HttpClient, ServiceStub, generate_stub
from .http_server import HttpServer

# Caching
from .cache import CachingClient, CACHE_MISS

__all__ = [
    # Version
    "__version__",
    # Constants
    "VERSION_11",
    "SD_VERSION",
    "MIME_TYPE_JSON",
    "SYSTEM_DESCRIBE",
    "TYPE_ANY",
    "TYPE_BIT",
    "TYPE_NUM",
    "TYPE_STR",
    "TYPE_ARR",
    "TYPE_OBJ",
    "TYPE_NIL",
    "CODE_JSONRPC_ERROR",
    # Types
    "ParameterSpec",
    "ReturnSpec",
    "ProcedureDescription",
    "CallRequest",
    "CallResult",
    "json_type_of",
    "new_result",
    "new_error_result",
    # Errors
    "RpcError",
    "ConfigurationError",
    "ClientError",
    "ServiceDown",
    "NotAService",
    "ServiceReturnsJunk",
    "ServiceError",
    "invalid_request_error",
    "method_not_found_error",
    "not_idempotent_error",
    "invalid_params_error",
    "internal_error",
    # Encoding
    "JsonCodec",
    "get_codec",
    "decode_query",
    "encode_query",
    # Service and arguments
    "Service",
    "canonicalize_args",
    "check_type",
    # Handler
    "Handler",
    "TransportRequest",
    "HttpResponse",
    "GetRequest",
    "PostRequest",
    "ErroneousRequest",
    "create_request",
    # Transports
    "Endpoint",
    "HttpTransport",
    "Transport",
    "TransportResponse",
    "HttpClient",
    "ServiceStub",
    "generate_stub",
    "HttpServer",
    # Caching
    "CachingClient",
    "CACHE_MISS",
]
