"""Image registry commands."""

from __future__ import annotations

from typing import List

from kitsune_client import proto

from .base import Command, CommandArgumentParser, check_response, parse_enum, parse_metadata, parse_uuid
from .metadata import add_metadata_parser, run_metadata
from ..context import ShellContext
from ..errors import CommandError
from ..output import emit_result, json_dump, render_table

IMAGE_HEADERS = ("ID", "Format", "Size", "Read-only", "Media type")


def image_row(image: proto.Image) -> List[object]:
    return [
        image.id.value if image.id else "",
        image.format.name,
        image.size,
        str(image.read_only).lower(),
        image.media_type.name,
    ]


class ImageCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "image",
            "Image registry specific actions",
            aliases=("img", "images", "i"),
            subcommands=("list", "create", "delete", "metadata"),
        )
        parser = CommandArgumentParser(prog="image", description="Image registry specific actions")
        subparsers = parser.add_subparsers(dest="subcmd", parser_class=CommandArgumentParser)
        subparsers.required = True
        subparsers.add_parser("list", description="List all images")
        create = subparsers.add_parser("create", description="Create an image")
        create.add_argument("-f", "--format", required=True, help="The image format")
        create.add_argument("-s", "--size", type=int, required=True, help="The image size in bytes")
        create.add_argument("-d", "--data", default="{}", help="Metadata as a JSON object of strings")
        delete = subparsers.add_parser("delete", description="Delete an image")
        delete.add_argument("--id", required=True, help="The image UUID")
        add_metadata_parser(subparsers, "image")
        self._parser = parser

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        args = self._parser.parse_args(argv)
        if args.subcmd == "create":
            return self._run_create(ctx, args.format, args.size, args.data)
        if args.subcmd == "delete":
            return self._run_delete(ctx, args.id)
        if args.subcmd == "metadata":
            return run_metadata(ctx, ctx.ensure_client().image_registry, args)
        return self._run_list(ctx)

    def _run_list(self, ctx: ShellContext) -> int:
        images = ctx.ensure_client().image_registry.get_images()
        if not ctx.pretty:
            for image in images:
                ctx.out.write(json_dump(proto.to_dict(image), pretty=False))
            return 0
        render_table(ctx, IMAGE_HEADERS, [image_row(image) for image in images])
        return 0

    def _run_create(self, ctx: ShellContext, format_name: str, size: int, data_text: str) -> int:
        if size <= 0:
            raise CommandError("invalid image size")
        image_format = parse_enum(proto.ImageFormat, format_name, "unknown format")
        data = parse_metadata(data_text)
        response = check_response(ctx.ensure_client().image_registry.create_image(image_format, size, data))
        image = response.image or proto.Image()
        if not ctx.pretty:
            ctx.out.write(json_dump(proto.to_dict(image), pretty=False))
            return 0
        metadata = image.data.data if image.data else data
        render_table(ctx, IMAGE_HEADERS + ("Metadata",), [image_row(image) + [json_dump(metadata, pretty=False)]])
        return 0

    def _run_delete(self, ctx: ShellContext, image_id: str) -> int:
        target_id = parse_uuid(image_id)
        check_response(ctx.ensure_client().image_registry.delete_image(target_id))
        emit_result(ctx, message=f"Deleted image {target_id}", data={"id": target_id, "deleted": True})
        return 0
