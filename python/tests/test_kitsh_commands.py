"""Tests for the static kitsh command tree."""

from __future__ import annotations

import json

import pytest

from kitsh.commands import build_registry
from kitsh.errors import TransportError
from kitsh.pipeline import execute

from kitsune_stubs import make_context

IMAGE_ID = "6f1c2d3e-0000-4000-8000-000000000001"
VM_ID = "6f1c2d3e-0000-4000-8000-0000000000aa"


@pytest.fixture
def registry():
    return build_registry()


def _image(**extra):
    data = {"id": {"value": IMAGE_ID}, "format": "QCOW2", "size": 1024, "read_only": True, "media_type": "CDROM"}
    data.update(extra)
    return data


def test_image_list_renders_table(registry):
    ctx, transport, streams = make_context()
    transport.results["GetImages"] = [_image()]
    assert execute(ctx, registry, ["image", "list"]) == 0
    header, row = streams.out.splitlines()
    assert header.split() == ["ID", "Format", "Size", "Read-only", "Media", "type"]
    assert row.split() == [IMAGE_ID, "QCOW2", "1024", "true", "CDROM"]
    assert transport.requests[0]["request"] == {}


def test_image_list_no_pretty_prints_json_lines(registry):
    ctx, transport, streams = make_context(pretty=False)
    transport.results["GetImages"] = [_image(), _image(size=1)]
    assert execute(ctx, registry, ["img", "list"]) == 0
    lines = [json.loads(line) for line in streams.out.splitlines()]
    assert [line["size"] for line in lines] == [1024, 1]
    assert lines[0]["format"] == "QCOW2"


def test_image_create_sends_typed_request(registry):
    ctx, transport, streams = make_context()
    transport.results["CreateImage"] = {"image": _image(data={"data": {"os": "linux"}})}
    argv = ["images", "create", "-f", "qcow2", "-s", "1024", "-d", '{"os": "linux"}']
    assert execute(ctx, registry, argv) == 0
    assert transport.requests[0]["request"] == {"format": "QCOW2", "size": 1024, "data": {"data": {"os": "linux"}}}
    assert "Metadata" in streams.out.splitlines()[0]
    assert '{"os":"linux"}' in streams.out


@pytest.mark.parametrize(
    "argv, message",
    [
        (["image", "create", "-f", "raw", "-s", "0"], "invalid image size"),
        (["image", "create", "-f", "floppy", "-s", "10"], "unknown format"),
        (["image", "create", "-f", "raw", "-s", "10", "-d", "[1]"], "invalid metadata"),
        (["image", "delete", "--id", "not-a-uuid"], "invalid id"),
        (["image", "create", "-f", "raw"], "required"),
    ],
)
def test_image_argument_validation(registry, argv, message):
    ctx, transport, streams = make_context()
    assert execute(ctx, registry, argv) == 1
    assert message in streams.err
    assert transport.requests == []


def test_image_delete_reports_remote_error(registry):
    ctx, transport, streams = make_context()
    transport.results["DeleteImage"] = {"error": {"type": "NOT_FOUND", "msg": "no such image"}}
    assert execute(ctx, registry, ["i", "delete", "--id", IMAGE_ID]) == 1
    assert streams.err.strip() == "error: NOT_FOUND: no such image"
    assert streams.out == ""


def test_image_delete_no_pretty(registry):
    ctx, transport, streams = make_context(pretty=False)
    assert execute(ctx, registry, ["image", "delete", "--id", IMAGE_ID]) == 0
    assert json.loads(streams.out) == {"id": IMAGE_ID, "deleted": True}
    assert transport.requests[0]["request"] == {"id": {"value": IMAGE_ID}}


def test_metadata_get_set_clear(registry):
    ctx, transport, streams = make_context()
    transport.results["GetMetadata"] = {"meta": {"data": {"k": "v"}}}
    assert execute(ctx, registry, ["image", "metadata", "--id", IMAGE_ID]) == 0
    assert streams.out.splitlines()[-1] == '{"k":"v"}'
    assert execute(ctx, registry, ["vm", "metadata", "set", "--id", VM_ID, "-d", '{"a": "b"}']) == 0
    assert execute(ctx, registry, ["vm", "metadata", "clear", "--id", VM_ID]) == 0
    set_requests = [req for req in transport.requests if req["method"] == "SetMetadata"]
    assert [req["request"]["meta"] for req in set_requests] == [{"data": {"a": "b"}}, {"data": {}}]
    assert set_requests[0]["service"].endswith("VirtualMachineRegistryService")


def test_vm_create_validation(registry):
    ctx, transport, streams = make_context()
    assert execute(ctx, registry, ["vm", "create", "-a", "x86_64", "-m", "-1"]) == 1
    assert execute(ctx, registry, ["vm", "create", "-a", "sparc", "-m", "1024"]) == 1
    assert streams.err.splitlines() == ["error: invalid ram size", "error: unknown architecture"]
    assert transport.requests == []


def test_vm_create_renders_machine(registry):
    ctx, transport, streams = make_context()
    transport.results["CreateVirtualMachine"] = {
        "machine": {"id": {"value": VM_ID}, "arch": "AARCH64", "memory_size": 2048}
    }
    assert execute(ctx, registry, ["v", "create", "-a", "aarch64", "-m", "2048"]) == 0
    assert transport.requests[0]["request"]["arch"] == "AARCH64"
    assert streams.out.splitlines()[1].split() == [VM_ID, "AARCH64", "2048"]


@pytest.mark.parametrize("pretty, alive, expected", [(True, True, "Status: Running"), (True, None, "Status: Stopped"), (False, True, "true")])
def test_vm_status(registry, pretty, alive, expected):
    ctx, transport, streams = make_context(pretty=pretty)
    transport.results["IsAlive"] = {} if alive is None else {"alive": alive}
    assert execute(ctx, registry, ["vm", "status", "--id", VM_ID]) == 0
    assert streams.out.strip() == expected


def test_vm_images_attach_detach(registry):
    ctx, transport, streams = make_context(pretty=False)
    transport.results["GetAttachedImages"] = {"images": [{"value": IMAGE_ID}]}
    assert execute(ctx, registry, ["vm", "images", "--id", VM_ID]) == 0
    assert execute(ctx, registry, ["vm", "attach", "--id", VM_ID, "--image", IMAGE_ID]) == 0
    assert execute(ctx, registry, ["vm", "detach", "--id", VM_ID, "--image", IMAGE_ID]) == 0
    assert streams.out.splitlines()[0] == IMAGE_ID
    assert transport.methods() == ["GetAttachedImages", "AttachImage", "DetachImage"]
    assert transport.requests[1]["request"] == {"machine": {"value": VM_ID}, "image": {"value": IMAGE_ID}}


def test_vm_power_action(registry):
    ctx, transport, streams = make_context()
    assert execute(ctx, registry, ["machine", "power", "--id", VM_ID, "--action", "reset"]) == 0
    assert transport.requests[0]["request"] == {"machine": {"value": VM_ID}, "action": "RESET"}
    assert execute(ctx, registry, ["vm", "power", "--id", VM_ID, "--action", "explode"]) == 1
    assert "unknown power action" in streams.err


def test_vm_vnc_without_websocket(registry):
    ctx, transport, streams = make_context()
    transport.results["GetVNCServers"] = {"servers": [{"display": ":0", "sockets": [{"port": 5900}]}]}
    assert execute(ctx, registry, ["vm", "vnc", "--id", VM_ID]) == 1
    assert "no open websocket found" in streams.err


def test_vm_vnc_serves_until_enter(registry, tmp_path):
    (tmp_path / "vnc_lite.html").write_text("<html></html>", encoding="utf-8")
    ctx, transport, streams = make_context(lines=[""])
    transport.results["GetVNCServers"] = {
        "servers": [{"display": ":0", "sockets": [{"port": 5900}, {"port": 5700, "is_web_socket": True}]}]
    }
    argv = ["vm", "vnc", "--id", VM_ID, "--http-host", "127.0.0.1:0", "--assets", str(tmp_path)]
    assert execute(ctx, registry, argv) == 0
    assert "http://127.0.0.1:0/?host=kitsune.test&port=5700&path=" in streams.out


def test_vm_vnc_missing_assets(registry, tmp_path):
    ctx, transport, streams = make_context()
    transport.results["GetVNCServers"] = {"servers": [{"sockets": [{"port": 5700, "is_web_socket": True}]}]}
    assert execute(ctx, registry, ["vm", "vnc", "--id", VM_ID, "--assets", str(tmp_path)]) == 1
    assert "cannot start the viewer" in streams.err


def test_transport_failure_exit_code(registry):
    ctx, transport, streams = make_context()
    transport.results["GetVirtualMachines"] = TransportError("connection refused")
    assert execute(ctx, registry, ["vm", "list"]) == 2
    assert streams.err.strip() == "error: rpc error: connection refused"


def test_missing_target_is_reported(registry):
    ctx, _, streams = make_context()
    ctx.target = None
    assert execute(ctx, registry, ["vm", "list"]) == 1
    assert "no target configured" in streams.err


def test_missing_subcommand(registry):
    ctx, _, streams = make_context()
    assert execute(ctx, registry, ["vm"]) == 1
    assert streams.err.startswith("error: vm:")


def test_help_lists_commands(registry):
    ctx, _, streams = make_context()
    assert execute(ctx, registry, ["help"]) == 0
    names = [line.split()[0] for line in streams.out.splitlines()]
    assert names == ["help", "console", "image", "vm", "exit", "<reg>.<Method>"]


def test_help_for_command_shows_usage(registry):
    ctx, _, streams = make_context()
    assert execute(ctx, registry, ["?", "img"]) == 0
    assert "usage: image" in streams.out
    assert execute(ctx, registry, ["help", "nope"]) == 1
    assert "unknown command: nope" in streams.err


def test_exit_command_raises_system_exit(registry):
    ctx, _, _ = make_context()
    with pytest.raises(SystemExit) as excinfo:
        execute(ctx, registry, ["q"])
    assert excinfo.value.code == 0


def test_dynamic_dispatch_through_pipeline(registry):
    ctx, transport, streams = make_context(pretty=False)
    transport.results["CreateImage"] = {"image": _image()}
    assert execute(ctx, registry, ["img.CreateImage", '{"format":', '"VDI", "size": 5}']) == 0
    assert transport.requests[0]["request"] == {"format": "VDI", "size": 5}
    assert json.loads(streams.out)["image"]["format"] == "QCOW2"
