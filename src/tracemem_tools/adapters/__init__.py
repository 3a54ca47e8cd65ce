"""Agent framework adapters for tracemem-tools.

Import adapters directly from their modules; the LangChain adapter needs the
optional ``langchain-core`` dependency:
    from tracemem_tools.adapters.openai import to_openai_tools
    from tracemem_tools.adapters.langchain import to_langchain_tools
    from tracemem_tools.adapters.sync_to_async import SyncLedgerClientAdapter
"""


# Lazy imports keep langchain-core optional
def __getattr__(name: str):
    if name == "to_openai_tools":
        from .openai import to_openai_tools
        return to_openai_tools
    elif name == "to_langchain_tools":
        from .langchain import to_langchain_tools
        return to_langchain_tools
    elif name == "SyncLedgerClientAdapter":
        from .sync_to_async import SyncLedgerClientAdapter
        return SyncLedgerClientAdapter
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = (
    "to_openai_tools",
    "to_langchain_tools",
    "SyncLedgerClientAdapter",
)
