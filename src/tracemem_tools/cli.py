"""Command-line interface for tracemem-tools."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .client import create_client
from .config import DEFAULT_ENDPOINT, ClientOptions
from .errors import ConfigurationError, LedgerError
from .tools import OPERATIONS, resolve_tool_names
from .types import ToolKey


def _parse_name_overrides(pairs: list[str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, name = pair.partition("=")
        if not sep:
            raise ConfigurationError(f"expected KEY=NAME, got {pair!r}")
        overrides[key.strip()] = name.strip()
    return overrides


def _required_params(key: ToolKey) -> list[str]:
    schema = OPERATIONS[key].parameters.model_json_schema()
    return list(schema.get("required", []))


def _lookup_key(name: str) -> ToolKey | None:
    for key in ToolKey:
        if name in (key.value, key.name, key.name.lower()):
            return key
    return None


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tracemem-tools", add_help=True)
    subparsers = parser.add_subparsers(dest="command", required=True)

    tools_parser = subparsers.add_parser("tools", help="List the tools exposed to agents")
    tools_parser.add_argument(
        "--name",
        action="append",
        default=[],
        metavar="KEY=NAME",
        help="Override a tool name (repeatable), e.g. tracememOpen=startTask",
    )
    tools_parser.add_argument("--json", action="store_true", help="Output JSON")

    schema_parser = subparsers.add_parser("schema", help="Print a tool's parameter JSON schema")
    schema_parser.add_argument("tool", help="Tool key, e.g. tracememOpen or open")

    caps_parser = subparsers.add_parser("capabilities", help="Query the service's capabilities")
    caps_parser.add_argument("--endpoint", default=DEFAULT_ENDPOINT, help="Service endpoint URL")

    return parser.parse_args(argv)


def _cmd_tools(overrides: list[str], json_output: bool, console: Console) -> int:
    try:
        names = resolve_tool_names(_parse_name_overrides(overrides))
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    rows = [
        {
            "key": key.value,
            "name": names[key],
            "description": op.description,
            "required": _required_params(key),
        }
        for key, op in OPERATIONS.items()
    ]
    if json_output:
        console.print_json(json.dumps(rows))
        return 0

    table = Table(title="TraceMem tools")
    table.add_column("Name", style="bold")
    table.add_column("Key")
    table.add_column("Required")
    table.add_column("Description")
    for row in rows:
        table.add_row(
            escape(row["name"]),
            escape(row["key"]),
            escape(", ".join(row["required"]) or "-"),
            escape(row["description"]),
        )
    console.print(table)
    return 0


def _cmd_schema(tool: str, console: Console) -> int:
    key = _lookup_key(tool)
    if key is None:
        print(f"unknown tool: {tool}", file=sys.stderr)
        return 2
    console.print_json(json.dumps(OPERATIONS[key].parameters.model_json_schema()))
    return 0


async def _fetch_capabilities(endpoint: str) -> Any:
    client = create_client(ClientOptions(endpoint=endpoint))
    try:
        return await client.capabilities()
    finally:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()


def _cmd_capabilities(endpoint: str, console: Console) -> int:
    try:
        result = asyncio.run(_fetch_capabilities(endpoint))
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except LedgerError as exc:
        print(f"capabilities failed: {exc}", file=sys.stderr)
        return 1
    console.print_json(json.dumps(result, default=str))
    return 0


def main(argv: list[str] | None = None, *, console: Console | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    out = console or Console()
    if args.command == "tools":
        return _cmd_tools(args.name, args.json, out)
    if args.command == "schema":
        return _cmd_schema(args.tool, out)
    if args.command == "capabilities":
        return _cmd_capabilities(args.endpoint, out)
    print("unknown command", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
