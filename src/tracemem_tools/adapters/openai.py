"""OpenAI-style function tool specs and call dispatch."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..tools import ToolDefinition


def to_openai_tool(tool: ToolDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.json_schema(),
        },
    }


def to_openai_tools(tools: Mapping[str, ToolDefinition]) -> list[dict[str, Any]]:
    """Render every tool as a chat-completions ``tools`` entry."""
    return [to_openai_tool(tool) for tool in tools.values()]


async def dispatch_tool_call(
    tools: Mapping[str, ToolDefinition], name: str, arguments: str | Mapping[str, Any] | None
) -> Any:
    """Execute a model-issued tool call. ``arguments`` may be the raw JSON string.

    Raises:
        KeyError: If no tool is registered under ``name``.
        ValueError: If ``arguments`` is not a JSON object.
    """
    tool = tools.get(name)
    if tool is None:
        raise KeyError(f"unknown tool: {name!r}")
    if isinstance(arguments, str):
        decoded = json.loads(arguments) if arguments.strip() else {}
    else:
        decoded = arguments or {}
    if not isinstance(decoded, Mapping):
        raise ValueError("tool call arguments must be a JSON object")
    return await tool.execute(decoded)
