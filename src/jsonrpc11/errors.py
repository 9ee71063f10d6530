"""JSON-RPC 1.1 error codes and error handling."""

from typing import Any, Optional

# JSON-RPC 1.1 over HTTP does not subdivide its error code space
CODE_JSONRPC_ERROR = 999
ERROR_NAME = "JSONRPCError"

STATUS_NOT_FOUND = 404
STATUS_SERVER_ERROR = 500
STATUS_UNAVAILABLE = 503


class RpcError(Exception):
    """Server-side JSON-RPC error with code and HTTP status."""

    def __init__(
        self,
        message: str,
        code: int = CODE_JSONRPC_ERROR,
        status: int = STATUS_SERVER_ERROR,
    ):
        super().__init__(message)
        self.code = code
        self.status = status

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict:
        """Convert to the error object carried in a response."""
        return {
            "code": self.code,
            "name": ERROR_NAME,
            "message": str(self),
        }

    @classmethod
    def from_dict(cls, error_dict: dict) -> "RpcError":
        """Create from dictionary representation."""
        return cls(
            message=error_dict.get("message", "Unknown error"),
            code=error_dict.get("code", CODE_JSONRPC_ERROR),
        )


class ConfigurationError(Exception):
    """Invalid service or procedure declaration.

    Raised at construction or registration time only. Deliberately unrelated
    to RpcError and ClientError so call-level handlers never catch it.
    """


# Client-side faults


class ClientError(Exception):
    """Base class for faults raised by the calling side."""


class ServiceDown(ClientError):
    """The service could not be reached."""


class NotAService(ClientError):
    """The service answered with something other than application/json."""


class ServiceReturnsJunk(ClientError):
    """The service answered with a body that is not usable JSON."""


class ServiceError(ClientError):
    """The service answered with a JSON-RPC error object."""

    def __init__(self, code: Any, message: Optional[str]):
        super().__init__(f"JSON-RPC error {code}: {message}")
        self.code = code
        self.message = message


# Error factory functions

def invalid_request_error(message: str = "Invalid request", status: int = STATUS_SERVER_ERROR) -> RpcError:
    """Create an error for a request that violates the transport rules."""
    return RpcError(message, status=status)


def method_not_found_error(method: Any, status: int = STATUS_SERVER_ERROR) -> RpcError:
    """Create a method not found error."""
    return RpcError(
        f"This JSON-RPC service does not provide a '{method}' method.",
        status=status,
    )


def not_idempotent_error() -> RpcError:
    """Create the error for a non-idempotent procedure called via GET."""
    return RpcError("This method is not idempotent and can only be called using POST.")


def invalid_params_error(message: str = "Invalid params") -> RpcError:
    """Create an invalid params error."""
    return RpcError(message)


def internal_error(message: str = "Internal error") -> RpcError:
    """Create an internal error."""
    return RpcError(message)
