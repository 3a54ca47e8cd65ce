"""Quickstart: TraceMem tools for an agent plus a decision-wrapped handler.

Requires TRACEMEM_API_KEY in the environment.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

from tracemem_tools import (
    AutomationMode,
    ToolDefaults,
    build_tools,
    create_client,
    with_decision,
)
from tracemem_tools.adapters.openai import dispatch_tool_call, to_openai_tools


def request_context(tool_name: str, args: Mapping[str, Any]) -> dict[str, Any]:
    return {"route": "/api/chat", "user_id": "demo-user", "tags": ["quickstart"]}


async def main() -> None:
    client = create_client()
    tools = build_tools(
        client=client,
        defaults=ToolDefaults(automation_mode=AutomationMode.PROPOSE),
        context=request_context,
    )

    # Hand these to any chat-completions style model.
    print(json.dumps([entry["function"]["name"] for entry in to_openai_tools(tools)]))

    # Simulate the model calling tools.
    opened = await dispatch_tool_call(tools, "tracememOpen", '{"action": "investigate"}')
    decision_id = opened["decision_id"]
    await dispatch_tool_call(
        tools,
        "tracememNote",
        {"decision_id": decision_id, "message": "looking at recent orders", "kind": "thought"},
    )
    await dispatch_tool_call(tools, "tracememClose", {"decision_id": decision_id, "outcome": "commit"})

    # A request handler whose decision is opened and closed automatically.
    async def handle(request: dict[str, Any], context: dict[str, Any], decision_id: str) -> dict[str, Any]:
        return {"status": 200, "decision_id": decision_id, "echo": request}

    handler = with_decision(handle, client=client, action="chat_request")
    print(await handler({"message": "hello"}))

    await client.aclose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
