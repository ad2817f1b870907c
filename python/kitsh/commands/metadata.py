"""Metadata subcommands shared by the image and VM registries."""

from __future__ import annotations

import argparse

from kitsune_client import RegistryClient

from .base import CommandArgumentParser, check_response, parse_metadata, parse_uuid
from ..context import ShellContext
from ..output import emit_result, json_dump

ACTIONS = ("get", "set", "clear")


def add_metadata_parser(subparsers: argparse._SubParsersAction, noun: str) -> CommandArgumentParser:
    parser = subparsers.add_parser("metadata", description=f"Get, set or clear {noun} metadata")
    parser.add_argument("action", nargs="?", choices=ACTIONS, default="get", help="Metadata action (default get)")
    parser.add_argument("--id", required=True, help=f"The {noun} UUID")
    parser.add_argument("-d", "--data", default="{}", help="Metadata as a JSON object of strings")
    return parser


def run_metadata(ctx: ShellContext, registry: RegistryClient, args: argparse.Namespace) -> int:
    target_id = parse_uuid(args.id)
    if args.action == "get":
        response = check_response(registry.get_metadata(target_id))
        data = response.meta.data if response.meta else {}
        ctx.out.write(json_dump(data, pretty=False))
        return 0
    data = {} if args.action == "clear" else parse_metadata(args.data)
    check_response(registry.set_metadata(target_id, data))
    emit_result(ctx, message=f"Metadata of {target_id} updated", data={"id": target_id, "data": data})
    return 0
