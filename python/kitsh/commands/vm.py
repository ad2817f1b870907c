"""Virtual machine registry commands."""

from __future__ import annotations

import argparse
from typing import List

from kitsune_client import proto
from kitsune_client.registries import find_web_socket

from .base import Command, CommandArgumentParser, check_response, parse_enum, parse_metadata, parse_uuid
from .metadata import add_metadata_parser, run_metadata
from ..context import ShellContext
from ..errors import CommandError
from ..output import emit_result, json_dump, render_table
from ..vnc import DEFAULT_HTTP_HOST, VncAssetServer, default_assets_dir, viewer_url

VM_HEADERS = ("ID", "Architecture", "Memory size")


def vm_row(vm: proto.VirtualMachine) -> List[object]:
    return [vm.id.value if vm.id else "", vm.arch.name, vm.memory_size]


class VmCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "vm",
            "Virtual machine registry specific actions",
            aliases=("vms", "machine", "v"),
            subcommands=("list", "create", "delete", "status", "images", "attach", "detach", "power", "vnc", "metadata"),
        )
        parser = CommandArgumentParser(prog="vm", description="Virtual machine registry specific actions")
        subparsers = parser.add_subparsers(dest="subcmd", parser_class=CommandArgumentParser)
        subparsers.required = True
        subparsers.add_parser("list", description="List all virtual machines")
        create = subparsers.add_parser("create", description="Create a virtual machine")
        create.add_argument("-a", "--arch", required=True, help="The machine architecture")
        create.add_argument("-m", "--memory", type=int, required=True, help="The memory size in bytes")
        create.add_argument("-d", "--data", default="{}", help="Metadata as a JSON object of strings")
        for name, description in (
            ("delete", "Delete a virtual machine"),
            ("status", "Show whether a virtual machine is running"),
            ("images", "List the images attached to a virtual machine"),
        ):
            sub = subparsers.add_parser(name, description=description)
            sub.add_argument("--id", required=True, help="The virtual machine UUID")
        for name, description in (("attach", "Attach an image"), ("detach", "Detach an image")):
            sub = subparsers.add_parser(name, description=description)
            sub.add_argument("--id", required=True, help="The virtual machine UUID")
            sub.add_argument("--image", required=True, help="The image UUID")
        power = subparsers.add_parser("power", description="Send a power action")
        power.add_argument("--id", required=True, help="The virtual machine UUID")
        power.add_argument("--action", required=True, help="The power action")
        vnc = subparsers.add_parser("vnc", description="Serve a noVNC viewer for the machine display")
        vnc.add_argument("--id", required=True, help="The virtual machine UUID")
        vnc.add_argument(
            "--http-host",
            default=DEFAULT_HTTP_HOST,
            help=f"HTTP listen address; an empty host listens on all interfaces (default {DEFAULT_HTTP_HOST})",
        )
        vnc.add_argument("--assets", help="Directory holding the noVNC assets")
        add_metadata_parser(subparsers, "virtual machine")
        self._parser = parser

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        args = self._parser.parse_args(argv)
        handler = getattr(self, f"_run_{args.subcmd}")
        return handler(ctx, args)

    def _run_list(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        machines = ctx.ensure_client().vm_registry.get_virtual_machines()
        if not ctx.pretty:
            for vm in machines:
                ctx.out.write(json_dump(proto.to_dict(vm), pretty=False))
            return 0
        render_table(ctx, VM_HEADERS, [vm_row(vm) for vm in machines])
        return 0

    def _run_create(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        if args.memory <= 0:
            raise CommandError("invalid ram size")
        arch = parse_enum(proto.Architecture, args.arch, "unknown architecture")
        data = parse_metadata(args.data)
        response = check_response(ctx.ensure_client().vm_registry.create_virtual_machine(arch, args.memory, data))
        vm = response.machine or proto.VirtualMachine()
        if not ctx.pretty:
            ctx.out.write(json_dump(proto.to_dict(vm), pretty=False))
            return 0
        render_table(ctx, VM_HEADERS, [vm_row(vm)])
        return 0

    def _run_delete(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        target_id = parse_uuid(args.id)
        check_response(ctx.ensure_client().vm_registry.delete_virtual_machine(target_id))
        emit_result(ctx, message=f"Deleted virtual machine {target_id}", data={"id": target_id, "deleted": True})
        return 0

    def _run_status(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        response = check_response(ctx.ensure_client().vm_registry.is_alive(parse_uuid(args.id)))
        alive = bool(response.alive)
        if not ctx.pretty:
            ctx.out.write(str(alive).lower())
        else:
            ctx.out.write(f"Status: {'Running' if alive else 'Stopped'}")
        return 0

    def _run_images(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        response = check_response(ctx.ensure_client().vm_registry.get_attached_images(parse_uuid(args.id)))
        if not ctx.pretty:
            for image in response.images:
                ctx.out.write(image.value)
            return 0
        render_table(ctx, ("Image ID",), [[image.value] for image in response.images])
        return 0

    def _run_attach(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        machine, image = parse_uuid(args.id), parse_uuid(args.image, what="image")
        check_response(ctx.ensure_client().vm_registry.attach_image(machine, image))
        emit_result(ctx, message=f"Attached image {image} to {machine}", data={"machine": machine, "image": image})
        return 0

    def _run_detach(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        machine, image = parse_uuid(args.id), parse_uuid(args.image, what="image")
        check_response(ctx.ensure_client().vm_registry.detach_image(machine, image))
        emit_result(ctx, message=f"Detached image {image} from {machine}", data={"machine": machine, "image": image})
        return 0

    def _run_power(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        action = parse_enum(proto.PowerAction, args.action, "unknown power action")
        machine = parse_uuid(args.id)
        check_response(ctx.ensure_client().vm_registry.send_power_action(machine, action))
        emit_result(ctx, message=f"Sent {action.name} to {machine}", data={"machine": machine, "action": action.name})
        return 0

    def _run_metadata(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        return run_metadata(ctx, ctx.ensure_client().vm_registry, args)

    def _run_vnc(self, ctx: ShellContext, args: argparse.Namespace) -> int:
        response = check_response(ctx.ensure_client().vm_registry.get_vnc_servers(parse_uuid(args.id)))
        sock = find_web_socket(response.servers)
        if sock is None:
            raise CommandError("no open websocket found")
        url = viewer_url(args.http_host, ctx.target or "", sock.port)
        server = VncAssetServer(args.http_host, args.assets or default_assets_dir())
        try:
            server.start()
        except (OSError, ValueError) as exc:
            raise CommandError(f"cannot start the viewer: {exc}") from exc
        try:
            if not ctx.pretty:
                ctx.out.write(url)
            else:
                ctx.out.write(f"A VNC viewer is running: {url}")
                ctx.out.write("Press 'Enter' to stop the HTTP server.")
            try:
                ctx.read_line("")
            except EOFError:
                pass
        finally:
            server.stop()
        return 0
