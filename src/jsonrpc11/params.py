"""Argument canonicalization and type checking."""

import json
import math
from typing import Any, List, Sequence

from .errors import invalid_params_error
from .types import (
    TYPE_ARR,
    TYPE_BIT,
    TYPE_NUM,
    TYPE_OBJ,
    TYPE_STR,
    CallRequest,
    ParameterSpec,
    json_type_of,
)

_MISSING = object()


def _show(value: Any) -> str:
    """Render a value for an error message."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


def _coerce_number(value: str) -> Any:
    """Parse a numeric string that round-trips exactly, else return _MISSING."""
    try:
        as_int = int(value)
    except ValueError:
        pass
    else:
        if str(as_int) == value:
            return as_int
    try:
        as_float = float(value)
    except ValueError:
        return _MISSING
    if math.isfinite(as_float) and repr(as_float) == value:
        return as_float
    return _MISSING


def check_type(name: str, type_name: str, value: Any) -> Any:
    """
    Type-check (and possibly coerce) one argument.

    Args:
        name: Parameter name, used in the error message
        type_name: Declared type: any, bit, num, str, arr or obj
        value: The supplied value (None when missing)

    Returns:
        The value, coerced where the declared type allows it

    Raises:
        RpcError: If the value does not satisfy the declared type
    """
    actual = json_type_of(value)

    if type_name == TYPE_BIT:
        if actual != TYPE_BIT:
            raise invalid_params_error(f"The arg {name} must be literally true or false (was {_show(value)})")
    elif type_name == TYPE_NUM:
        if actual != TYPE_NUM:
            coerced = _coerce_number(value) if actual == TYPE_STR else _MISSING
            if coerced is _MISSING:
                raise invalid_params_error(f"The arg {name} must be numeric (was {_show(value)})")
            value = coerced
    elif type_name == TYPE_STR:
        if actual != TYPE_STR:
            if actual != TYPE_NUM:
                raise invalid_params_error(f"The arg {name} must be a string (was {_show(value)})")
            value = str(value)
    elif type_name == TYPE_ARR:
        if actual != TYPE_ARR:
            raise invalid_params_error(f"The arg {name} must be an array (was {_show(value)})")
    elif type_name == TYPE_OBJ:
        if actual != TYPE_OBJ:
            raise invalid_params_error(f"The arg {name} must be a JSON object (was {_show(value)})")

    return value


def canonicalize_args(params: Sequence[ParameterSpec], call: CallRequest) -> List[Any]:
    """
    Resolve a call's positional and named arguments into one positional list.

    Named arguments may use the parameter name or its stringified index.
    Consumed entries are removed from ``call.named`` and the resolved list is
    stored back into ``call.positional``. Stops at the first failure.

    Args:
        params: The procedure's declared parameters
        call: The call being processed

    Returns:
        The canonical positional argument list

    Raises:
        RpcError: On the first arity or type violation
    """
    if not params and call.named:
        raise invalid_params_error("Parameters passed to method declared to take none")

    args = list(call.positional)
    if len(args) < len(params):
        args.extend([None] * (len(params) - len(args)))

    for i, param in enumerate(params):
        by_name = call.named.pop(param.name, _MISSING)
        by_index = call.named.pop(str(i), _MISSING)
        if by_name is not _MISSING and by_index is not _MISSING:
            raise invalid_params_error(
                f"You cannot set the parameter {param.name} both by name and position"
            )

        arg = args[i]
        if arg is None:
            if by_name is not _MISSING:
                arg = by_name
            elif by_index is not _MISSING:
                arg = by_index

        args[i] = check_type(param.name, param.type, arg)

    if call.named:
        raise invalid_params_error(f"Excess parameters passed ({_show(call.named)})")

    call.positional = args
    return args
