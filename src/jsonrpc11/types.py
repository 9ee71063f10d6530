"""Core JSON-RPC 1.1 types and data structures."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

# Constants
VERSION_11 = "1.1"
SD_VERSION = "1.0"
MIME_TYPE_JSON = "application/json"
SYSTEM_DESCRIBE = "system.describe"

# Value type names
TYPE_ANY = "any"
TYPE_BIT = "bit"
TYPE_NUM = "num"
TYPE_STR = "str"
TYPE_ARR = "arr"
TYPE_OBJ = "obj"
TYPE_NIL = "nil"

PARAM_TYPES = (TYPE_ANY, TYPE_BIT, TYPE_NUM, TYPE_STR, TYPE_ARR, TYPE_OBJ)
RETURN_TYPES = PARAM_TYPES + (TYPE_NIL,)

# Anything that json.loads can produce
JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


def json_type_of(value: Any) -> Optional[str]:
    """Classify a decoded JSON value by its service-description type name.

    Returns None for values outside the JSON value space.
    """
    if value is None:
        return TYPE_NIL
    # bool is a subclass of int, so it has to be tested first
    if isinstance(value, bool):
        return TYPE_BIT
    if isinstance(value, (int, float)):
        return TYPE_NUM
    if isinstance(value, str):
        return TYPE_STR
    if isinstance(value, (list, tuple)):
        return TYPE_ARR
    if isinstance(value, dict):
        return TYPE_OBJ
    return None


@dataclass(frozen=True)
class ParameterSpec:
    """A declared procedure parameter. Its index in the list is its position."""

    name: str
    type: str = TYPE_ANY

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class ReturnSpec:
    """Declared return type of a procedure. ``nil`` suppresses the result."""

    type: str = TYPE_ANY

    def to_dict(self) -> dict:
        return {"type": self.type}


@dataclass
class ProcedureDescription:
    """A registered procedure: its schema plus the local callable."""

    name: str
    handler: Callable[..., Any]
    params: List[ParameterSpec] = field(default_factory=list)
    returns: ReturnSpec = field(default_factory=ReturnSpec)
    idempotent: bool = False
    summary: Optional[str] = None
    help: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to the ``procs`` entry of a service description."""
        result: Dict[str, Any] = {"name": self.name}
        if self.summary is not None:
            result["summary"] = self.summary
        if self.help is not None:
            result["help"] = self.help
        if self.idempotent:
            result["idempotent"] = True
        result["params"] = [p.to_dict() for p in self.params]
        result["return"] = self.returns.to_dict()
        return result


@dataclass
class CallRequest:
    """A single inbound call, owned by the request that parsed it.

    ``named`` is drained into ``positional`` during canonicalization.
    """

    method: Optional[str] = None
    positional: List[Any] = field(default_factory=list)
    named: Dict[str, Any] = field(default_factory=dict)
    id: Any = None


@dataclass
class CallResult:
    """Outcome of a call: a value or an error, never both."""

    value: Any = None
    error: Optional[dict] = None
    id: Any = None
    status: int = 200

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """Convert to the JSON-RPC 1.1 response envelope."""
        result: Dict[str, Any] = {"version": VERSION_11}
        if self.id is not None:
            result["id"] = self.id
        if self.error is not None:
            result["error"] = self.error
        else:
            result["result"] = self.value
        return result


def new_result(value: Any, id: Any = None) -> CallResult:
    """Create a successful result."""
    return CallResult(value=value, id=id)


def new_error_result(error: dict, id: Any = None, status: int = 500) -> CallResult:
    """Create an error result."""
    return CallResult(error=error, id=id, status=status)
