"""Basic tests for JSON-RPC 1.1 core functionality."""

import json

import pytest

from jsonrpc11 import (
    VERSION_11,
    JsonCodec,
    ParameterSpec,
    ProcedureDescription,
    RpcError,
    ServiceError,
    decode_query,
    encode_query,
    get_codec,
    json_type_of,
    method_not_found_error,
    new_error_result,
    new_result,
)


def test_version_constant():
    """Test version constant."""
    assert VERSION_11 == "1.1"


def test_json_type_of():
    assert json_type_of(None) == "nil"
    assert json_type_of(True) == "bit"
    assert json_type_of(0) == "num"
    assert json_type_of(2.5) == "num"
    assert json_type_of("2") == "str"
    assert json_type_of([1]) == "arr"
    assert json_type_of({"a": 1}) == "obj"
    assert json_type_of(object()) is None


def test_result_envelope():
    """Test success and error envelopes."""
    assert new_result(67).to_dict() == {"version": "1.1", "result": 67}
    assert new_result(None, id="a").to_dict() == {"version": "1.1", "id": "a", "result": None}

    error = RpcError("boom")
    result = new_error_result(error.to_dict(), id=3)
    assert not result.ok
    assert result.status == 500
    assert result.to_dict() == {
        "version": "1.1",
        "id": 3,
        "error": {"code": 999, "name": "JSONRPCError", "message": "boom"},
    }


def test_rpc_error():
    """Test RPC error."""
    error = RpcError("Test error")
    assert str(error) == "Test error"
    assert error.code == 999
    assert error.status == 500

    restored = RpcError.from_dict(error.to_dict())
    assert restored.code == 999
    assert restored.message == "Test error"


def test_method_not_found_error():
    """Test method not found error factory."""
    error = method_not_found_error("test", status=404)
    assert isinstance(error, RpcError)
    assert error.status == 404
    assert "'test'" in str(error)


def test_service_error_message():
    error = ServiceError(123, "Disaster!")
    assert str(error) == "JSON-RPC error 123: Disaster!"


def test_procedure_description_to_dict():
    proc = ProcedureDescription(
        name="sub",
        handler=lambda x, y: x - y,
        params=[ParameterSpec("x", "num"), ParameterSpec("y", "num")],
    )
    assert proc.to_dict() == {
        "name": "sub",
        "params": [{"name": "x", "type": "num"}, {"name": "y", "type": "num"}],
        "return": {"type": "any"},
    }


def test_json_codec_response_line():
    """Test JSON codec marshaling of a response."""
    codec = JsonCodec()
    assert codec.marshal_response(new_result(67)) == '{"version": "1.1", "result": 67}\n'
    with pytest.raises(TypeError):
        codec.marshal_response(new_result(object()))


def test_json_codec_request():
    codec = get_codec()
    body = codec.marshal_request("sub", [100, 33])
    assert isinstance(body, bytes)
    assert json.loads(body) == {"version": "1.1", "method": "sub", "params": [100, 33]}
    assert codec.unmarshal(body) == codec.unmarshal(body.decode())


def test_json_codec_is_strict_about_non_finite_numbers():
    codec = JsonCodec()
    for text in ("NaN", "[Infinity]", '{"x": -Infinity}'):
        with pytest.raises(ValueError):
            codec.unmarshal(text)
    with pytest.raises(ValueError):
        codec.marshal_request("sub", [float("nan"), 1])
    with pytest.raises(ValueError):
        codec.marshal_response(new_result(float("inf")))


def test_get_codec_unknown():
    with pytest.raises(ValueError):
        get_codec("application/cbor")


def test_decode_query_accumulates():
    assert decode_query("x=AAA&y=BBB&y=CCCCCC&x=DDDDDD&y=E") == {
        "x": ["AAA", "DDDDDD"],
        "y": ["BBB", "CCCCCC", "E"],
    }


def test_decode_query_edge_cases():
    assert decode_query("") == {}
    assert decode_query("flag&x=&&y=a+b%2Bc") == {"flag": "", "x": "", "y": "a b+c"}


def test_encode_query():
    assert encode_query([("x", 12), ("y", "a b")]) == "x=12&y=a%20b"
    assert encode_query([("b", True), ("n", None), ("l", [1, 2])]) == "b=true&n=&l=1&l=2"
    assert encode_query([("o", {"k": 1})]) == "o=%7B%22k%22%3A%201%7D"
    assert encode_query([]) == ""
    assert encode_query([("e", []), ("t", ()), ("z", "z")]) == "e=&t=&z=z"
