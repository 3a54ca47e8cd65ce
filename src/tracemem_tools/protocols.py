"""Async protocol definitions for the ledger client and context providers.

These protocols describe the boundary to external collaborators. The bundled
HttpLedgerClient satisfies LedgerClient; synchronous clients can be wrapped
with adapters.sync_to_async.SyncLedgerClientAdapter.

Design notes:
- All ledger operations are async; the adapter never blocks the event loop
- @runtime_checkable is for debugging/logging convenience only, not dispatch
- Return values are passed through to the agent runtime untouched
"""

from __future__ import annotations

from typing import Any, Awaitable, Mapping, Protocol, runtime_checkable

from .types import RequestContext


@runtime_checkable
class ProductCatalog(Protocol):
    """Catalog of named products the ledger can be queried about."""

    async def list(self, purpose: str | None = None) -> Any:
        ...

    async def get(self, name: str) -> Any:
        ...


@runtime_checkable
class LedgerClient(Protocol):
    """Async client for the decision ledger service.

    Implementations own transport, retries and auth. From this package's
    point of view a client is stateless and may be shared by many concurrent
    requests.
    """

    products: ProductCatalog

    async def open(
        self,
        action: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        """Open a decision for an action. Returns something carrying decision_id."""
        ...

    async def create_decision(
        self,
        intent: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        """Open a decision for an explicit intent."""
        ...

    async def note(
        self,
        decision_id: str,
        *,
        message: str,
        kind: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        ...

    async def read(
        self, decision_id: str, *, product: str, purpose: str, query: Any = None
    ) -> Any:
        ...

    async def evaluate(
        self, decision_id: str, *, policy: str, inputs: Mapping[str, Any]
    ) -> Any:
        ...

    async def request_approval(self, decision_id: str, *, message: str) -> Any:
        ...

    async def write(
        self,
        decision_id: str,
        *,
        product: str,
        purpose: str,
        mutation: Any,
        idempotency_key: str | None = None,
    ) -> Any:
        ...

    async def trace(self, decision_id: str) -> Any:
        ...

    async def receipt(self, decision_id: str) -> Any:
        ...

    async def close(
        self, decision_id: str, *, outcome: str, reason: str | None = None
    ) -> Any:
        """Close the decision with "commit" or "abort"."""
        ...

    async def capabilities(self) -> Any:
        ...


@runtime_checkable
class ContextProvider(Protocol):
    """Caller-supplied callback producing request-scoped context.

    May be sync or async. ``runtime`` is only passed when a runtime hint is
    configured.
    """

    def __call__(
        self, tool_name: str, args: Mapping[str, Any], runtime: str | None = None
    ) -> RequestContext | Awaitable[RequestContext] | None:
        ...
