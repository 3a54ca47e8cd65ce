"""Exception types for tracemem-tools."""

from __future__ import annotations

from typing import Any, Mapping


class TraceMemToolsError(Exception):
    """Base exception for all tracemem-tools errors."""


class ConfigurationError(TraceMemToolsError):
    """Raised when required configuration is missing or invalid."""


class DecisionOpenError(TraceMemToolsError):
    """Raised when the ledger does not hand back a usable decision."""


class ContextProviderError(TraceMemToolsError):
    """Wraps a failing context provider. Logged, never propagated."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(f"context provider failed for {tool_name}: {cause!r}")
        self.tool_name = tool_name
        self.cause = cause


class CloseError(TraceMemToolsError):
    """Wraps a failed close attempt. Reported through CloseResult only."""

    def __init__(self, decision_id: str, cause: BaseException) -> None:
        super().__init__(f"failed to close decision {decision_id}: {cause!r}")
        self.decision_id = decision_id
        self.cause = cause


class LedgerError(TraceMemToolsError):
    """Base class for errors raised by the default ledger client."""


class LedgerTransportError(LedgerError):
    """Raised when the HTTP transport fails or returns a non-OK status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LedgerProtocolError(LedgerError):
    """Raised when the JSON-RPC response is malformed or unexpected."""


class LedgerRpcError(LedgerError):
    """Raised when the service returns a JSON-RPC error object."""

    def __init__(
        self,
        code: int,
        message: str,
        *,
        data: Mapping[str, Any] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data
        self.request_id = request_id

    @property
    def kind(self) -> str | None:
        if not self.data:
            return None
        value = self.data.get("kind")
        return value if isinstance(value, str) else None
