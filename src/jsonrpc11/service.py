"""Service registry: declared procedures and the service description."""

import copy
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .errors import ConfigurationError
from .types import (
    PARAM_TYPES,
    RETURN_TYPES,
    SD_VERSION,
    SYSTEM_DESCRIBE,
    TYPE_ANY,
    TYPE_OBJ,
    ParameterSpec,
    ProcedureDescription,
    ReturnSpec,
)

logger = logging.getLogger(__name__)

ParamDecl = Union[str, Mapping[str, Any], ParameterSpec]
ReturnDecl = Union[None, str, Mapping[str, Any], ReturnSpec]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def canonical_param(decl: ParamDecl) -> ParameterSpec:
    """Turn a parameter declaration into a ParameterSpec.

    A bare name is a parameter of type ``any``.
    """
    if isinstance(decl, ParameterSpec):
        spec = decl
    elif isinstance(decl, str):
        spec = ParameterSpec(name=decl)
    elif isinstance(decl, Mapping):
        spec = ParameterSpec(
            name=str(decl.get("name", "")),
            type=str(decl.get("type") or TYPE_ANY),
        )
    else:
        raise ConfigurationError(f"Cannot use {decl!r} as a parameter declaration")

    if _blank(spec.name):
        raise ConfigurationError("JSON-RPC parameter must have a name")
    if spec.type not in PARAM_TYPES:
        raise ConfigurationError(f"Unknown type '{spec.type}' for parameter {spec.name}")
    return spec


def canonical_return(decl: ReturnDecl) -> ReturnSpec:
    """Turn a return declaration into a ReturnSpec, defaulting to ``any``."""
    if decl is None:
        spec = ReturnSpec()
    elif isinstance(decl, ReturnSpec):
        spec = decl
    elif isinstance(decl, str):
        spec = ReturnSpec(type=decl)
    elif isinstance(decl, Mapping):
        spec = ReturnSpec(type=str(decl.get("type") or TYPE_ANY))
    else:
        raise ConfigurationError(f"Cannot use {decl!r} as a return declaration")

    if spec.type not in RETURN_TYPES:
        raise ConfigurationError(f"Unknown return type '{spec.type}'")
    return spec


class Service:
    """
    A JSON-RPC 1.1 service: a table of procedures plus its self-description.

    ``system.describe`` is registered on construction and always answers with
    the current description. The description is built lazily and cached until
    the next registration.
    """

    def __init__(
        self,
        name: str,
        id: str,
        sdversion: str = SD_VERSION,
        version: Optional[str] = None,
        summary: Optional[str] = None,
        help: Optional[str] = None,
        address: Optional[str] = None,
        disabled: bool = False,
    ):
        """
        Initialize a service.

        Args:
            name: Service name
            id: Opaque, stable service identifier (a UUID is customary)
            sdversion: Service description version, must be "1.0"
            version: Optional service version
            summary: Optional one-line summary
            help: Optional URL of human-readable documentation
            address: Optional service address
            disabled: Start the service administratively disabled (HTTP 503)

        Raises:
            ConfigurationError: If the declaration is incomplete or wrong
        """
        if sdversion != SD_VERSION:
            raise ConfigurationError(f"JSON-RPC service must have an sdversion of {SD_VERSION}")
        if _blank(name):
            raise ConfigurationError("JSON-RPC service must have a name")
        if _blank(id):
            raise ConfigurationError("JSON-RPC service must have an id")

        self.sdversion = sdversion
        self.name = name
        self.id = id
        self.version = version
        self.summary = summary
        self.help = help
        self.address = address
        self._disabled = bool(disabled)

        self._procs: Dict[str, ProcedureDescription] = {}
        self._sd_cache: Optional[dict] = None
        self._lock = threading.RLock()

        self.register(SYSTEM_DESCRIBE, self.describe, returns={"type": TYPE_OBJ}, idempotent=True)

    # Administrative state

    @property
    def disabled(self) -> bool:
        return self._disabled

    def disable(self) -> None:
        """Turn the service off; every request is answered with HTTP 503."""
        self._disabled = True
        logger.info("JSON-RPC service %s disabled", self.name)

    def enable(self) -> None:
        """Turn the service back on."""
        self._disabled = False
        logger.info("JSON-RPC service %s enabled", self.name)

    # Registration

    def register(
        self,
        name: str,
        handler: Callable[..., Any],
        params: Optional[Iterable[ParamDecl]] = None,
        returns: ReturnDecl = None,
        idempotent: bool = False,
        summary: Optional[str] = None,
        help: Optional[str] = None,
    ) -> str:
        """
        Register a procedure, replacing any procedure of the same name.

        Args:
            name: Call name of the procedure
            handler: Local callable, invoked with the canonical positional args
            params: Parameter declarations, in positional order. Each is a bare
                name, a mapping with "name" and optional "type", or a ParameterSpec
            returns: Return declaration: a type name, a mapping with "type", or
                a ReturnSpec. Defaults to "any"
            idempotent: Whether the procedure may be called (and cached) via GET
            summary: Optional one-line summary
            help: Optional URL of human-readable documentation

        Returns:
            The registered name

        Example:
            service.register("add", lambda x, y: x + y,
                             params=[{"name": "x", "type": "num"}, "y"],
                             idempotent=True)
        """
        if _blank(name):
            raise ConfigurationError("JSON-RPC procedure must have a name")
        if handler is None or not callable(handler):
            raise ConfigurationError("JSON-RPC procedure must specify a handler to be executed locally")

        proc = ProcedureDescription(
            name=name,
            handler=handler,
            params=[canonical_param(p) for p in (params or [])],
            returns=canonical_return(returns),
            idempotent=bool(idempotent),
            summary=summary,
            help=help,
        )

        with self._lock:
            self._procs[name] = proc
            self._sd_cache = None

        logger.debug("Registered JSON-RPC procedure %s.%s", self.name, name)
        return name

    def procedure(
        self,
        name: Optional[str] = None,
        params: Optional[Iterable[ParamDecl]] = None,
        returns: ReturnDecl = None,
        idempotent: bool = False,
        summary: Optional[str] = None,
        help: Optional[str] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register(). The name defaults to the function's name."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(
                name or func.__name__,
                func,
                params=params,
                returns=returns,
                idempotent=idempotent,
                summary=summary,
                help=help,
            )
            return func

        return decorator

    # Lookup

    def lookup(self, name: Any) -> Optional[ProcedureDescription]:
        """Get a procedure by name, or None if there is no such procedure."""
        if not isinstance(name, str):
            return None
        with self._lock:
            return self._procs.get(name)

    @property
    def procedures(self) -> List[ProcedureDescription]:
        """All registered procedures, in registration order."""
        with self._lock:
            return list(self._procs.values())

    def describe(self) -> dict:
        """Get the service description (the result of system.describe).

        Returns a fresh copy; the cached manifest itself is never handed out.
        """
        with self._lock:
            if self._sd_cache is not None:
                return copy.deepcopy(self._sd_cache)

            sd: Dict[str, Any] = {
                "sdversion": self.sdversion,
                "name": self.name,
                "id": self.id,
            }
            for key in ("version", "summary", "help", "address"):
                value = getattr(self, key)
                if value is not None:
                    sd[key] = value
            sd["procs"] = [
                proc.to_dict() for name, proc in self._procs.items() if name != SYSTEM_DESCRIBE
            ]

            self._sd_cache = sd
            return copy.deepcopy(sd)
