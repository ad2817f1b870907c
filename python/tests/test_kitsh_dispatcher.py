"""Tests for the kitsh dynamic dispatcher."""

from __future__ import annotations

import json
from typing import Any, List

import pytest

from kitsune_client import KitsuneClient, RpcMethod, TransportError, proto

from kitsh.catalog import RegistryCatalog
from kitsh.dispatcher import Dispatcher
from kitsh.errors import CommandSyntaxError, MalformedPayload, RemoteError, UnknownMethod, UnknownRegistry

from kitsune_stubs import StubTransport


class EchoRegistry:
    """Registry handle whose only method returns its decoded request."""

    methods = (RpcMethod("Echo", proto.CreateImageRequest, proto.CreateImageRequest),)

    def __init__(self) -> None:
        self.calls: List[Any] = []

    def call(self, name: str, request: Any) -> Any:
        self.calls.append((name, request))
        return request


def _dispatcher():
    transport = StubTransport()
    client = KitsuneClient("kitsune.test", transport=transport)  # type: ignore[arg-type]
    return Dispatcher(RegistryCatalog.from_client(client)), transport


def test_echo_of_empty_payload_is_zero_valued_request():
    registry = EchoRegistry()
    dispatcher = Dispatcher(RegistryCatalog({"echo": registry}))
    result = dispatcher.call("echo", "Echo", "{}")
    assert result.value == proto.to_dict(proto.CreateImageRequest())
    assert registry.calls[0][1] == proto.CreateImageRequest()


def test_missing_payload_defaults_to_empty_object():
    registry = EchoRegistry()
    dispatcher = Dispatcher(RegistryCatalog({"echo": registry}))
    assert dispatcher.call("echo", "Echo", None).value == dispatcher.call("echo", "Echo", "  ").value


def test_unknown_registry_never_calls_transport():
    dispatcher, transport = _dispatcher()
    with pytest.raises(UnknownRegistry):
        dispatcher.call("nope", "Foo", "{}")
    assert transport.requests == []


def test_unknown_method():
    dispatcher, transport = _dispatcher()
    with pytest.raises(UnknownMethod):
        dispatcher.call("img", "Foo", "{}")
    assert transport.requests == []


def test_malformed_payload_never_calls_transport():
    dispatcher, transport = _dispatcher()
    with pytest.raises(MalformedPayload) as excinfo:
        dispatcher.call("img", "CreateImage", "{not json")
    assert isinstance(excinfo.value.cause, json.JSONDecodeError)
    assert transport.requests == []


def test_payload_shape_mismatch_is_malformed():
    dispatcher, transport = _dispatcher()
    with pytest.raises(MalformedPayload, match="size"):
        dispatcher.call("img", "CreateImage", '{"size": "big"}')
    with pytest.raises(MalformedPayload):
        dispatcher.call("img", "CreateImage", "[1, 2]")
    assert transport.requests == []


def test_payload_is_sent_as_typed_request():
    dispatcher, transport = _dispatcher()
    transport.results["CreateImage"] = {"image": {"id": {"value": "i-1"}, "size": 10, "format": "VDI"}}
    result = dispatcher.call("img", "CreateImage", '{"format": "vdi", "size": 10}')
    assert transport.requests[0]["request"] == {"format": "VDI", "size": 10}
    assert result.value == {
        "image": {"id": {"value": "i-1"}, "format": "VDI", "size": 10, "read_only": False, "media_type": "DISK"}
    }


def test_remote_error_is_distinct_from_success():
    dispatcher, transport = _dispatcher()
    transport.results["DeleteImage"] = {"error": {"type": "NOT_FOUND", "msg": "no such image"}}
    with pytest.raises(RemoteError) as excinfo:
        dispatcher.call("img", "DeleteImage", '{"id": {"value": "x"}}')
    assert excinfo.value.kind == "NOT_FOUND"
    assert excinfo.value.message == "no such image"
    assert str(excinfo.value) == "NOT_FOUND: no such image"


def test_empty_success_result():
    dispatcher, transport = _dispatcher()
    transport.results["DeleteImage"] = {}
    result = dispatcher.call("img", "DeleteImage", '{"id": {"value": "x"}}')
    assert result.value == {}
    assert result.render(pretty=False) == "{}"


def test_transport_error_propagates():
    dispatcher, transport = _dispatcher()
    transport.results["IsAlive"] = TransportError("connection closed")
    with pytest.raises(TransportError):
        dispatcher.call("vm", "IsAlive", "{}")


def test_rejected_rpc_is_transport_error_not_remote_error():
    dispatcher, transport = _dispatcher()
    transport.results["IsAlive"] = {"__reject__": "unimplemented"}
    with pytest.raises(TransportError):
        dispatcher.call("vm", "IsAlive", "{}")


def test_streaming_methods_return_lists():
    dispatcher, transport = _dispatcher()
    transport.results["GetImages"] = [{"size": 1}, {"size": 2}]
    result = dispatcher.call("img", "GetImages")
    assert [item["size"] for item in result.value] == [1, 2]


def test_run_parses_command_and_joins_payload_tokens():
    dispatcher, transport = _dispatcher()
    transport.results["IsAlive"] = {"alive": False}
    result = dispatcher.run(["vm.IsAlive", '{"id":', '{"value": "x"}}'])
    assert transport.requests[0]["request"] == {"id": {"value": "x"}}
    assert result.value == {"alive": False}


@pytest.mark.parametrize("command", ["img", "img.", ".CreateImage"])
def test_run_requires_registry_and_method(command):
    dispatcher, _ = _dispatcher()
    with pytest.raises(CommandSyntaxError):
        dispatcher.run([command])
