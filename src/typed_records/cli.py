"""Inspect record declarations from the command line.

Usage:
    typed-records types schema.ttr
    typed-records describe schema.ttr Customer
    typed-records describe schema.ttr Customer --roles id,compare,update
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog

from typed_records.context import PipelineRunContext
from typed_records.descriptor import TypeDescriptor
from typed_records.errors import ShapeError
from typed_records.log import configure_logging
from typed_records.parsing import TypeParser
from typed_records.roles import RoleKind, role_set
from typed_records.types import TypeRegistry

logger = structlog.get_logger(__name__)


def format_descriptor(descriptor: TypeDescriptor) -> str:
    """Render a descriptor as an indented text listing."""
    lines = [f"{descriptor.name} ({descriptor.shape.value})"]
    if descriptor.properties:
        width = max(len(p.name) for p in descriptor.properties)
        lines.append("properties:")
        for prop in descriptor.properties:
            type_text = prop.declared_type.name
            if prop.underlying_type is not prop.declared_type:
                type_text += f" -> {prop.underlying_type.name}"
            lines.append(f"  {prop.ordinal:>3}  {prop.name:<{width}}  {type_text}")
    if descriptor.roles:
        lines.append("roles:")
        for kind in RoleKind:
            if not descriptor.is_requested(kind):
                continue
            names = ", ".join(r.property_name or "" for r in descriptor.roles_for(kind))
            lines.append(f"  {kind.value}: {names or '-'}")
    return "\n".join(lines)


def _load_registry(path: str) -> TypeRegistry:
    source = Path(path).read_text(encoding="utf-8")
    return TypeParser().parse(source)


def _parse_roles(text: str | None) -> frozenset[RoleKind]:
    if not text:
        return frozenset()
    if text.strip().lower() == "all":
        return frozenset(RoleKind)
    return role_set(name for name in text.split(",") if name.strip())


def cmd_types(args: argparse.Namespace) -> int:
    registry = _load_registry(args.schema)
    for name in registry.list_user_types():
        type_def = registry.get_or_raise(name)
        print(f"{name}  {type(type_def).__name__}")
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    registry = _load_registry(args.schema)
    with PipelineRunContext(registry) as context:
        descriptor = context.descriptor_for(args.type_name, _parse_roles(args.roles))
        print(format_descriptor(descriptor))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typed-records",
        description="Inspect record declarations and their column roles",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument(
        "--log-format", choices=("text", "json"), default="text", help="Log output format"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    types_parser = subparsers.add_parser("types", help="List declared types")
    types_parser.add_argument("schema", help="Declaration file")
    types_parser.set_defaults(handler=cmd_types)

    describe_parser = subparsers.add_parser("describe", help="Describe a type and its roles")
    describe_parser.add_argument("schema", help="Declaration file")
    describe_parser.add_argument("type_name", help="Name of the type to describe")
    describe_parser.add_argument(
        "--roles",
        default=None,
        help='Comma-separated role kinds to resolve, or "all" (default: none)',
    )
    describe_parser.set_defaults(handler=cmd_describe)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        configure_logging(args.log_level, args.log_format)
    except ValueError as e:
        parser.error(str(e))

    try:
        return args.handler(args)
    except (OSError, SyntaxError, ValueError, ShapeError) as e:
        logger.debug("command_failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
