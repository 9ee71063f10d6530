"""Tests for service declaration and the service description."""

import threading

import pytest

from jsonrpc11 import (
    SYSTEM_DESCRIBE,
    ConfigurationError,
    ParameterSpec,
    ReturnSpec,
    RpcError,
    ClientError,
    Service,
)

from conftest import SERVICE_ID


def valid_args(**overrides):
    args = {"name": "TestService", "id": SERVICE_ID}
    args.update(overrides)
    return args


def add(x, y):
    return x + y


def test_service_construction():
    """Test a minimal service declaration."""
    service = Service(**valid_args())
    assert service.name == "TestService"
    assert service.id == SERVICE_ID
    assert service.sdversion == "1.0"
    assert not service.disabled


def test_service_requires_name():
    with pytest.raises(ConfigurationError, match="JSON-RPC service must have a name"):
        Service(**valid_args(name=""))


def test_service_requires_id():
    with pytest.raises(ConfigurationError, match="JSON-RPC service must have an id"):
        Service(**valid_args(id=None))


def test_service_rejects_other_sdversion():
    with pytest.raises(ConfigurationError, match="sdversion of 1.0"):
        Service(**valid_args(sdversion="1.1"))


def test_configuration_error_is_not_a_call_error():
    """Configuration errors must not be caught by call-level handlers."""
    assert not issubclass(ConfigurationError, RpcError)
    assert not issubclass(ConfigurationError, ClientError)


def test_describe_initially_empty():
    """Test the description of a service with no procedures."""
    sd = Service(**valid_args()).describe()
    assert sd == {
        "sdversion": "1.0",
        "name": "TestService",
        "id": SERVICE_ID,
        "procs": [],
    }


def test_describe_optional_fields():
    sd = Service(**valid_args(version="2.1", summary="Arithmetic", address="http://x/y")).describe()
    assert sd["version"] == "2.1"
    assert sd["summary"] == "Arithmetic"
    assert sd["address"] == "http://x/y"
    assert "help" not in sd


def test_register_requires_name():
    service = Service(**valid_args())
    with pytest.raises(ConfigurationError, match="JSON-RPC procedure must have a name"):
        service.register("", add)


def test_register_requires_handler():
    service = Service(**valid_args())
    with pytest.raises(ConfigurationError, match="must specify a handler"):
        service.register("test", None)

    with pytest.raises(ConfigurationError, match="must specify a handler"):
        service.register("test", "not callable")


def test_register_returns_name():
    service = Service(**valid_args())
    assert service.register("test", add) == "test"


def test_register_defaults():
    """Test the description entry of a procedure declared with no extras."""
    service = Service(**valid_args())
    service.register("test", add)
    assert service.describe()["procs"] == [
        {"name": "test", "params": [], "return": {"type": "any"}}
    ]


def test_register_untyped_params():
    service = Service(**valid_args())
    service.register("test", add, params=["bar", {"name": "baz"}, "foobar"])
    assert service.describe()["procs"][0]["params"] == [
        {"name": "bar", "type": "any"},
        {"name": "baz", "type": "any"},
        {"name": "foobar", "type": "any"},
    ]


def test_register_typed_params():
    service = Service(**valid_args())
    service.register(
        "test",
        add,
        params=[
            {"name": "bar", "type": "num"},
            ParameterSpec("baz", "str"),
            {"name": "foobar", "type": "bit"},
        ],
    )
    assert service.describe()["procs"][0]["params"] == [
        {"name": "bar", "type": "num"},
        {"name": "baz", "type": "str"},
        {"name": "foobar", "type": "bit"},
    ]


def test_register_rejects_unknown_type():
    service = Service(**valid_args())
    with pytest.raises(ConfigurationError, match="Unknown type 'number'"):
        service.register("test", add, params=[{"name": "x", "type": "number"}])

    with pytest.raises(ConfigurationError, match="Unknown return type"):
        service.register("test", add, returns="void")


def test_register_return_spec():
    service = Service(**valid_args())
    service.register("test", add, returns={"type": "obj"})
    assert service.describe()["procs"] == [
        {"name": "test", "params": [], "return": {"type": "obj"}}
    ]
    assert service.lookup("test").returns == ReturnSpec("obj")


def test_register_idempotent():
    service = Service(**valid_args())
    service.register("test", add, idempotent=True, summary="Adds", help="http://docs/add")
    assert service.lookup("test").idempotent is True
    assert service.describe()["procs"] == [
        {
            "name": "test",
            "summary": "Adds",
            "help": "http://docs/add",
            "idempotent": True,
            "params": [],
            "return": {"type": "any"},
        }
    ]


def test_register_replaces_and_invalidates_description():
    """Re-registering a name replaces the schema and refreshes the description."""
    service = Service(**valid_args())
    service.register("test", add, params=["x", "y"])
    first = service.describe()
    assert first == service.describe()

    service.register("test", add, params=[{"name": "z", "type": "num"}])
    procs = service.describe()["procs"]
    assert len(procs) == 1
    assert procs[0]["params"] == [{"name": "z", "type": "num"}]


def test_describe_never_lists_system_describe():
    service = Service(**valid_args())
    service.register("a", add)
    service.register("b", add)
    names = [p["name"] for p in service.describe()["procs"]]
    assert names == ["a", "b"]
    assert SYSTEM_DESCRIBE not in names


def test_system_describe_is_builtin():
    service = Service(**valid_args())
    proc = service.lookup(SYSTEM_DESCRIBE)
    assert proc is not None
    assert proc.idempotent
    assert proc.returns.type == "obj"
    assert proc.handler() == service.describe()


def test_lookup_missing():
    service = Service(**valid_args())
    assert service.lookup("nope") is None
    assert service.lookup(["not", "a", "name"]) is None


def test_procedure_decorator():
    service = Service(**valid_args())

    @service.procedure(params=["a", "b"], idempotent=True)
    def multiply(a, b):
        return a * b

    assert multiply(2, 3) == 6
    proc = service.lookup("multiply")
    assert proc.handler is multiply
    assert [p.name for p in proc.params] == ["a", "b"]


def test_enable_disable():
    service = Service(**valid_args(disabled=True))
    assert service.disabled
    service.enable()
    assert not service.disabled
    service.disable()
    assert service.disabled


def test_describe_returns_a_copy():
    service = Service(**valid_args())
    service.register("a", add, params=["x"])
    manifest = service.describe()
    manifest["procs"].clear()
    manifest["name"] = "Tampered"

    again = service.describe()
    assert again["name"] == "TestService"
    assert [p["name"] for p in again["procs"]] == ["a"]
    assert service.lookup(SYSTEM_DESCRIBE).handler()["procs"][0]["params"] == [
        {"name": "x", "type": "any"}
    ]


def test_register_while_describing():
    """Readers only ever see complete manifests while procedures are added."""
    service = Service(**valid_args())
    names = [f"p{i}" for i in range(50)]
    seen = []
    done = threading.Event()

    def writer():
        for name in names:
            service.register(name, add, params=["x", "y"])
        done.set()

    def reader():
        while not done.is_set():
            seen.append([p["name"] for p in service.describe()["procs"]])

    threads = [threading.Thread(target=reader) for _ in range(4)]
    threads.append(threading.Thread(target=writer))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for listed in seen:
        assert listed == names[: len(listed)]
    assert [p["name"] for p in service.describe()["procs"]] == names
