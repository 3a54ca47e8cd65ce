"""Sync-to-async adapter for ledger clients.

Wraps a synchronous ledger client so it satisfies the async LedgerClient
protocol. Every call runs in a worker thread via asyncio.to_thread().

Usage:
    client = SyncLedgerClientAdapter(my_blocking_client)
    tools = build_tools(client=client)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class SyncProductCatalogAdapter:
    _products: Any  # sync catalog with list()/get()

    async def list(self, purpose: str | None = None) -> Any:
        return await asyncio.to_thread(self._products.list, purpose)

    async def get(self, name: str) -> Any:
        return await asyncio.to_thread(self._products.get, name)


@dataclass(frozen=True, slots=True)
class SyncLedgerClientAdapter:
    """Async facade over a blocking ledger client."""

    _client: Any  # LedgerClient-shaped, but synchronous
    products: SyncProductCatalogAdapter = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "products", SyncProductCatalogAdapter(self._client.products))

    async def open(
        self,
        action: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await asyncio.to_thread(
            self._client.open,
            action,
            actor=actor,
            automation_mode=automation_mode,
            metadata=metadata,
        )

    async def create_decision(
        self,
        intent: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await asyncio.to_thread(
            self._client.create_decision,
            intent,
            actor=actor,
            automation_mode=automation_mode,
            metadata=metadata,
        )

    async def note(
        self,
        decision_id: str,
        *,
        message: str,
        kind: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await asyncio.to_thread(
            self._client.note, decision_id, message=message, kind=kind, data=data
        )

    async def read(
        self, decision_id: str, *, product: str, purpose: str, query: Any = None
    ) -> Any:
        return await asyncio.to_thread(
            self._client.read, decision_id, product=product, purpose=purpose, query=query
        )

    async def evaluate(
        self, decision_id: str, *, policy: str, inputs: Mapping[str, Any]
    ) -> Any:
        return await asyncio.to_thread(
            self._client.evaluate, decision_id, policy=policy, inputs=inputs
        )

    async def request_approval(self, decision_id: str, *, message: str) -> Any:
        return await asyncio.to_thread(self._client.request_approval, decision_id, message=message)

    async def write(
        self,
        decision_id: str,
        *,
        product: str,
        purpose: str,
        mutation: Any,
        idempotency_key: str | None = None,
    ) -> Any:
        return await asyncio.to_thread(
            self._client.write,
            decision_id,
            product=product,
            purpose=purpose,
            mutation=mutation,
            idempotency_key=idempotency_key,
        )

    async def trace(self, decision_id: str) -> Any:
        return await asyncio.to_thread(self._client.trace, decision_id)

    async def receipt(self, decision_id: str) -> Any:
        return await asyncio.to_thread(self._client.receipt, decision_id)

    async def close(
        self, decision_id: str, *, outcome: str, reason: str | None = None
    ) -> Any:
        return await asyncio.to_thread(
            self._client.close, decision_id, outcome=outcome, reason=reason
        )

    async def capabilities(self) -> Any:
        return await asyncio.to_thread(self._client.capabilities)
