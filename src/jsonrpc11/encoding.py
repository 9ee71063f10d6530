"""Message encoding and decoding."""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from urllib.parse import quote, unquote_plus

from .types import MIME_TYPE_JSON, VERSION_11, CallResult


class JsonCodec:
    """JSON codec for JSON-RPC 1.1 messages."""

    @property
    def mime_type(self) -> str:
        """Get the MIME type for JSON."""
        return MIME_TYPE_JSON

    def marshal_response(self, result: CallResult) -> str:
        """Encode a call result as a single newline-terminated line.

        Raises TypeError or ValueError if the result value is not JSON.
        """
        return json.dumps(result.to_dict(), allow_nan=False) + "\n"

    def marshal_request(self, method: str, params: Any) -> bytes:
        """Encode a POST request body."""
        body = {"version": VERSION_11, "method": method, "params": params}
        return json.dumps(body, allow_nan=False).encode("utf-8")

    def unmarshal(self, data: Union[bytes, str]) -> Any:
        """Decode a JSON document."""
        # Handle both bytes and str
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return json.loads(data, parse_constant=_reject_constant)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def decode_query(query_string: str) -> Dict[str, Any]:
    """Split a query string into named arguments.

    Repeated keys accumulate into a list in the order received. Empty values
    are kept as empty strings.
    """
    named: Dict[str, Any] = {}
    if not query_string:
        return named
    for pair in query_string.split("&"):
        if not pair:
            continue
        key, _, val = pair.partition("=")
        key = unquote_plus(key)
        val = unquote_plus(val)
        if key not in named:
            named[key] = val
        elif isinstance(named[key], list):
            named[key].append(val)
        else:
            named[key] = [named[key], val]
    return named


def query_value(value: Any) -> str:
    """Render a single value the way it is written into a query string."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


def encode_query(pairs: Iterable[Tuple[str, Any]]) -> str:
    """Encode (name, value) pairs as a query string without the leading '?'.

    List values are written as repeated pairs.
    """
    parts: List[str] = []
    for key, value in pairs:
        values = value if isinstance(value, (list, tuple)) else [value]
        if not values:
            # An empty list still occupies its slot
            values = [""]
        for item in values:
            parts.append(f"{quote(str(key), safe='')}={quote(query_value(item), safe='')}")
    return "&".join(parts)


def get_codec(mime_type: str = MIME_TYPE_JSON) -> JsonCodec:
    """Get a codec by MIME type."""
    if mime_type == MIME_TYPE_JSON:
        return JsonCodec()
    raise ValueError(f"Unknown MIME type: {mime_type}")


def media_type(value: Optional[str]) -> str:
    """Strip parameters such as charset from a Content-Type style header."""
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()
