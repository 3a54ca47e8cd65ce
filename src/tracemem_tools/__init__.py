"""tracemem-tools public API."""

from .client import HttpLedgerClient, create_client
from .config import API_KEY_ENV_VAR, ClientOptions, ToolDefaults, api_key_from_env
from .context import ContextPipeline, merge_contexts, resolve_context
from .errors import (
    CloseError,
    ConfigurationError,
    ContextProviderError,
    DecisionOpenError,
    LedgerError,
    LedgerProtocolError,
    LedgerRpcError,
    LedgerTransportError,
    TraceMemToolsError,
)
from .lifecycle import (
    DecisionOptions,
    close_decision,
    decision_handler,
    is_streaming_response,
    open_decision,
    with_decision,
)
from .protocols import ContextProvider, LedgerClient, ProductCatalog
from .redaction import REDACTED, redact_obvious_secrets
from .tools import ToolDefinition, ToolsConfig, build_tools
from .types import (
    DEFAULT_TOOL_NAMES,
    AutomationMode,
    CloseResult,
    DecisionHandle,
    Outcome,
    RequestContext,
    StreamingClose,
    ToolKey,
)

__all__ = (
    # Client
    "create_client",
    "HttpLedgerClient",
    "ClientOptions",
    "API_KEY_ENV_VAR",
    "api_key_from_env",
    # Tools
    "build_tools",
    "ToolsConfig",
    "ToolDefinition",
    "ToolDefaults",
    "ToolKey",
    "DEFAULT_TOOL_NAMES",
    # Lifecycle
    "with_decision",
    "decision_handler",
    "DecisionOptions",
    "open_decision",
    "close_decision",
    "is_streaming_response",
    # Context and redaction
    "merge_contexts",
    "resolve_context",
    "ContextPipeline",
    "redact_obvious_secrets",
    "REDACTED",
    # Types
    "AutomationMode",
    "Outcome",
    "StreamingClose",
    "DecisionHandle",
    "CloseResult",
    "RequestContext",
    # Protocols
    "LedgerClient",
    "ProductCatalog",
    "ContextProvider",
    # Errors
    "TraceMemToolsError",
    "ConfigurationError",
    "DecisionOpenError",
    "ContextProviderError",
    "CloseError",
    "LedgerError",
    "LedgerTransportError",
    "LedgerProtocolError",
    "LedgerRpcError",
)
