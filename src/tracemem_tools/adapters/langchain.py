from __future__ import annotations

from typing import Any, Mapping

# Any is required because StructuredTool comes from an optional dependency.

from ..async_utils import run_sync
from ..tools import ToolDefinition


def _structured_tool_class() -> Any:
    try:
        from langchain_core.tools import StructuredTool
    except ImportError as exc:
        raise RuntimeError(
            "langchain-core is required for LangChain tools (install \"tracemem-tools[langchain]\")"
        ) from exc
    return StructuredTool


def to_langchain_tool(tool: ToolDefinition) -> Any:
    structured_tool = _structured_tool_class()

    async def coroutine(**kwargs: Any) -> Any:
        return await tool.execute(kwargs)

    def func(**kwargs: Any) -> Any:
        return run_sync(tool.execute(kwargs))

    return structured_tool.from_function(
        func=func,
        coroutine=coroutine,
        name=tool.name,
        description=tool.description,
        args_schema=tool.parameters,
    )


def to_langchain_tools(tools: Mapping[str, ToolDefinition]) -> list[Any]:
    return [to_langchain_tool(tool) for tool in tools.values()]
