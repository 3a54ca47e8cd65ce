"""Ledger client construction and the bundled JSON-RPC client.

create_client() resolves the credential and builds a client handle without
touching the network. HttpLedgerClient speaks JSON-RPC 2.0 ``tools/call`` to
the TraceMem MCP endpoint; it performs no retries.
"""

from __future__ import annotations

import json
import logging
from itertools import count
from typing import Any, Mapping

import httpx

from .config import ClientOptions, EnvResolver, api_key_from_env
from .errors import (
    ConfigurationError,
    LedgerProtocolError,
    LedgerRpcError,
    LedgerTransportError,
)
from .protocols import LedgerClient

_logger = logging.getLogger(__name__)

# Remote tool names, one per ledger operation.
RPC_DECISION_CREATE = "decision_create"
RPC_DECISION_NOTE = "decision_add_context"
RPC_DECISION_READ = "decision_read"
RPC_DECISION_EVALUATE = "decision_evaluate"
RPC_DECISION_REQUEST_APPROVAL = "decision_request_approval"
RPC_DECISION_WRITE = "decision_write"
RPC_DECISION_TRACE = "decision_trace"
RPC_DECISION_RECEIPT = "decision_receipt"
RPC_DECISION_CLOSE = "decision_close"
RPC_PRODUCTS_LIST = "products_list"
RPC_PRODUCT_GET = "product_get"
RPC_CAPABILITIES_GET = "capabilities_get"


def create_client(
    options: ClientOptions | None = None,
    *,
    env_resolver: EnvResolver = api_key_from_env,
) -> LedgerClient:
    """Build a ledger client. Explicit ``api_key`` wins over ``env_resolver()``.

    Raises:
        ConfigurationError: If neither source yields a credential.
    """
    opts = options or ClientOptions()
    api_key = opts.api_key or env_resolver()
    if not api_key:
        raise ConfigurationError(
            "TraceMem API key is required. Set the TRACEMEM_API_KEY environment "
            "variable or pass api_key in ClientOptions."
        )
    resolved = opts.model_copy(update={"api_key": api_key})
    if resolved.client_factory is not None:
        return resolved.client_factory(resolved)
    return HttpLedgerClient(resolved)


def _compact(arguments: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in arguments.items() if v is not None}


class _Products:
    """``client.products`` namespace."""

    def __init__(self, client: HttpLedgerClient) -> None:
        self._client = client

    async def list(self, purpose: str | None = None) -> Any:
        return await self._client.call_tool(RPC_PRODUCTS_LIST, _compact({"purpose": purpose}))

    async def get(self, name: str) -> Any:
        return await self._client.call_tool(RPC_PRODUCT_GET, {"product": name})


class HttpLedgerClient:
    """JSON-RPC client for the TraceMem MCP endpoint.

    Usage:
        client = HttpLedgerClient(ClientOptions(api_key="..."))
        handle = await client.open("refactor")
        await client.close(handle["decision_id"], outcome="commit")
        await client.aclose()
    """

    def __init__(
        self,
        options: ClientOptions,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._options = options
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._request_ids = count(1)
        self.products = _Products(self)

    @property
    def endpoint(self) -> str:
        return self._options.endpoint

    def _build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._options.user_agent:
            headers["User-Agent"] = self._options.user_agent
        if self._options.api_key:
            headers["Authorization"] = f"Bearer {self._options.api_key}"
        headers.update(self._options.headers)
        return headers

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                headers=self._build_headers(),
                timeout=self._options.timeout_sec,
                transport=self._transport,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> HttpLedgerClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Any:
        """Invoke one remote tool and return its JSON payload."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": "tools/call",
            "params": {"name": name, "arguments": dict(arguments)},
        }
        _logger.debug("TraceMem call %s (id=%s)", name, payload["id"])
        try:
            response = await self._client().post(self._options.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise LedgerTransportError(f"TraceMem transport error: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise LedgerTransportError(
                f"HTTP {response.status_code} from TraceMem",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            envelope = response.json()
        except ValueError as exc:
            raise LedgerProtocolError("invalid JSON-RPC response") from exc
        if not isinstance(envelope, dict):
            raise LedgerProtocolError("invalid JSON-RPC response shape")
        if envelope.get("error") is not None:
            raise self._rpc_error(envelope)

        result = envelope.get("result")
        if not isinstance(result, dict):
            raise LedgerProtocolError("missing JSON-RPC result")
        return self._unwrap_content(result)

    def _unwrap_content(self, result: dict[str, Any]) -> Any:
        if "structuredContent" in result:
            return result["structuredContent"]
        content = result.get("content")
        if not isinstance(content, list) or not content:
            return result
        first = content[0]
        if not isinstance(first, dict):
            raise LedgerProtocolError("invalid JSON-RPC content item")
        if first.get("type") == "json" and "json" in first:
            return first["json"]
        if first.get("type") == "text":
            text = first.get("text", "")
            try:
                return json.loads(text)
            except (TypeError, ValueError):
                return text
        raise LedgerProtocolError(f"unsupported JSON-RPC content type: {first.get('type')!r}")

    def _rpc_error(self, envelope: Mapping[str, Any]) -> LedgerRpcError:
        error = envelope.get("error")
        if not isinstance(error, dict):
            raise LedgerProtocolError("invalid JSON-RPC error shape")
        code = error.get("code")
        message = error.get("message")
        if not isinstance(code, int) or not isinstance(message, str):
            raise LedgerProtocolError("invalid JSON-RPC error object")
        data = error.get("data")
        request_id = envelope.get("id")
        return LedgerRpcError(
            code,
            message,
            data=data if isinstance(data, dict) else None,
            request_id=str(request_id) if request_id is not None else None,
        )

    # -- ledger operations --

    async def open(
        self,
        action: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_CREATE,
            _compact({
                "intent": action,
                "automation_mode": automation_mode,
                "actor": actor,
                "metadata": dict(metadata) if metadata else None,
            }),
        )

    async def create_decision(
        self,
        intent: str,
        *,
        actor: str | None = None,
        automation_mode: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.open(
            intent, actor=actor, automation_mode=automation_mode, metadata=metadata
        )

    async def note(
        self,
        decision_id: str,
        *,
        message: str,
        kind: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_NOTE,
            _compact({
                "decision_id": decision_id,
                "message": message,
                "kind": kind,
                "data": dict(data) if data is not None else None,
            }),
        )

    async def read(
        self, decision_id: str, *, product: str, purpose: str, query: Any = None
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_READ,
            _compact({
                "decision_id": decision_id,
                "product": product,
                "purpose": purpose,
                "query": query,
            }),
        )

    async def evaluate(
        self, decision_id: str, *, policy: str, inputs: Mapping[str, Any]
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_EVALUATE,
            {"decision_id": decision_id, "policy": policy, "inputs": dict(inputs)},
        )

    async def request_approval(self, decision_id: str, *, message: str) -> Any:
        return await self.call_tool(
            RPC_DECISION_REQUEST_APPROVAL,
            {"decision_id": decision_id, "message": message},
        )

    async def write(
        self,
        decision_id: str,
        *,
        product: str,
        purpose: str,
        mutation: Any,
        idempotency_key: str | None = None,
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_WRITE,
            _compact({
                "decision_id": decision_id,
                "product": product,
                "purpose": purpose,
                "mutation": mutation,
                "idempotency_key": idempotency_key,
            }),
        )

    async def trace(self, decision_id: str) -> Any:
        return await self.call_tool(RPC_DECISION_TRACE, {"decision_id": decision_id})

    async def receipt(self, decision_id: str) -> Any:
        return await self.call_tool(RPC_DECISION_RECEIPT, {"decision_id": decision_id})

    async def close(
        self, decision_id: str, *, outcome: str, reason: str | None = None
    ) -> Any:
        return await self.call_tool(
            RPC_DECISION_CLOSE,
            _compact({"decision_id": decision_id, "outcome": outcome, "reason": reason}),
        )

    async def capabilities(self) -> Any:
        return await self.call_tool(RPC_CAPABILITIES_GET, {})
