"""Tool factory: ledger operations as named, schema-bound async callables.

Each tool validates its arguments against a pydantic model, resolves and
redacts the request context (for decision-scoped operations), calls the ledger
client and normalizes the result.

Usage:
    tools = build_tools(
        client=create_client(),
        defaults=ToolDefaults(automation_mode=AutomationMode.PROPOSE),
        context=lambda tool_name, args: {"route": "/api/chat", "user_id": "demo"},
    )
    handle = await tools["tracememOpen"].execute({"action": "refactor"})
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel

from .client import create_client
from .config import ClientOptions, ToolDefaults
from .context import ContextPipeline
from .errors import ConfigurationError
from .protocols import ContextProvider, LedgerClient
from .redaction import redact_obvious_secrets
from .schemas import (
    CloseArgs,
    DecisionRefArgs,
    EvaluateArgs,
    NoArgs,
    NoteArgs,
    OpenArgs,
    ProductGetArgs,
    ProductsListArgs,
    ReadArgs,
    RequestApprovalArgs,
    ToolArgs,
    WriteArgs,
)
from .types import DEFAULT_TOOL_NAMES, RequestContext, ToolKey, as_decision_handle

_logger = logging.getLogger(__name__)

# Key under which the request context rides along inside note data.
NOTE_CONTEXT_KEY = "_request_context"


@dataclass(frozen=True, slots=True)
class ToolsConfig:
    """Configuration for build_tools().

    ``tool_names`` maps a ToolKey (or its default-name string) to the name the
    agent runtime should see. ``expose_decision_handle_tool`` is reserved and
    currently has no effect.
    """

    client: LedgerClient | None = None
    client_options: ClientOptions | None = None
    tool_names: Mapping[ToolKey | str, str] = field(default_factory=dict)
    sanitize: bool = True
    defaults: ToolDefaults = field(default_factory=ToolDefaults)
    context: ContextProvider | None = None
    runtime: str | None = None
    expose_decision_handle_tool: bool = False


@dataclass(frozen=True, slots=True)
class _ToolRuntime:
    client: LedgerClient
    defaults: ToolDefaults
    sanitize: bool


Handler = Callable[[_ToolRuntime, Any, RequestContext], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class _Operation:
    description: str
    parameters: type[ToolArgs]
    handler: Handler
    resolves_context: bool = True


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """One agent-callable tool. Immutable once built."""

    key: ToolKey
    name: str
    description: str
    parameters: type[BaseModel]
    _run: Callable[[Any], Awaitable[Any]] = field(repr=False)

    async def execute(self, args: Mapping[str, Any] | BaseModel | None = None) -> Any:
        """Validate ``args`` against the parameter contract and run the tool.

        Raises:
            pydantic.ValidationError: If the arguments do not match the contract.
        """
        if isinstance(args, self.parameters):
            params = args
        elif isinstance(args, BaseModel):
            params = self.parameters.model_validate(args.model_dump())
        else:
            params = self.parameters.model_validate(dict(args or {}))
        return await self._run(params)

    def json_schema(self) -> dict[str, Any]:
        return self.parameters.model_json_schema()


async def _open(rt: _ToolRuntime, args: OpenArgs, metadata: RequestContext) -> dict[str, str]:
    actor = args.actor or rt.defaults.actor
    mode = args.automation_mode or rt.defaults.automation_mode
    mode_value = mode.value if mode is not None else None
    if args.intent:
        raw = await rt.client.create_decision(
            args.intent, actor=actor, automation_mode=mode_value, metadata=metadata
        )
    else:
        raw = await rt.client.open(
            args.action or "", actor=actor, automation_mode=mode_value, metadata=metadata
        )
    return {"decision_id": as_decision_handle(raw).decision_id}


async def _note(rt: _ToolRuntime, args: NoteArgs, metadata: RequestContext) -> dict[str, bool]:
    data = args.data or {}
    if rt.sanitize:
        data = redact_obvious_secrets(data)
    await rt.client.note(
        args.decision_id,
        message=args.message,
        kind=args.kind,
        data={**data, NOTE_CONTEXT_KEY: metadata},
    )
    return {"success": True}


async def _read(rt: _ToolRuntime, args: ReadArgs, metadata: RequestContext) -> Any:
    return await rt.client.read(
        args.decision_id, product=args.product, purpose=args.purpose, query=args.query
    )


async def _evaluate(rt: _ToolRuntime, args: EvaluateArgs, metadata: RequestContext) -> Any:
    return await rt.client.evaluate(args.decision_id, policy=args.policy, inputs=args.inputs)


async def _request_approval(
    rt: _ToolRuntime, args: RequestApprovalArgs, metadata: RequestContext
) -> dict[str, str]:
    await rt.client.request_approval(args.decision_id, message=args.message)
    return {"status": "requested"}


async def _write(rt: _ToolRuntime, args: WriteArgs, metadata: RequestContext) -> dict[str, bool]:
    await rt.client.write(
        args.decision_id,
        product=args.product,
        purpose=args.purpose,
        mutation=args.mutation,
        idempotency_key=args.idempotency_key,
    )
    return {"success": True}


async def _trace(rt: _ToolRuntime, args: DecisionRefArgs, metadata: RequestContext) -> Any:
    return await rt.client.trace(args.decision_id)


async def _receipt(rt: _ToolRuntime, args: DecisionRefArgs, metadata: RequestContext) -> Any:
    return await rt.client.receipt(args.decision_id)


async def _close(rt: _ToolRuntime, args: CloseArgs, metadata: RequestContext) -> dict[str, bool]:
    await rt.client.close(args.decision_id, outcome=args.outcome.value, reason=args.reason)
    return {"success": True}


async def _products_list(
    rt: _ToolRuntime, args: ProductsListArgs, metadata: RequestContext
) -> Any:
    return await rt.client.products.list(args.purpose)


async def _product_get(rt: _ToolRuntime, args: ProductGetArgs, metadata: RequestContext) -> Any:
    return await rt.client.products.get(args.name)


async def _capabilities(rt: _ToolRuntime, args: NoArgs, metadata: RequestContext) -> Any:
    return await rt.client.capabilities()


OPERATIONS: dict[ToolKey, _Operation] = {
    ToolKey.OPEN: _Operation(
        "Start a new decision or task. Returns a decision_id to be used in subsequent calls.",
        OpenArgs,
        _open,
    ),
    ToolKey.NOTE: _Operation(
        "Log a thought, observation, or reasoning for a decision.", NoteArgs, _note
    ),
    ToolKey.READ: _Operation("Read data from a product context.", ReadArgs, _read),
    ToolKey.EVALUATE: _Operation("Evaluate inputs against a policy.", EvaluateArgs, _evaluate),
    ToolKey.REQUEST_APPROVAL: _Operation(
        "Request human approval for a decision.", RequestApprovalArgs, _request_approval
    ),
    ToolKey.WRITE: _Operation("Execute a mutation/write action.", WriteArgs, _write),
    ToolKey.TRACE: _Operation(
        "Get the current trace of the decision.", DecisionRefArgs, _trace, resolves_context=False
    ),
    ToolKey.RECEIPT: _Operation(
        "Get the receipt for a closed or open decision.",
        DecisionRefArgs,
        _receipt,
        resolves_context=False,
    ),
    ToolKey.CLOSE: _Operation("Finalize and close the decision.", CloseArgs, _close),
    ToolKey.PRODUCTS_LIST: _Operation(
        "List available products in the system.",
        ProductsListArgs,
        _products_list,
        resolves_context=False,
    ),
    ToolKey.PRODUCT_GET: _Operation(
        "Get details of a specific product.", ProductGetArgs, _product_get, resolves_context=False
    ),
    ToolKey.CAPABILITIES: _Operation(
        "Get capabilities of the connected TraceMem server.",
        NoArgs,
        _capabilities,
        resolves_context=False,
    ),
}


def resolve_tool_names(overrides: Mapping[ToolKey | str, str]) -> dict[ToolKey, str]:
    """Apply a partial name override on top of the default names."""
    names = dict(DEFAULT_TOOL_NAMES)
    for raw_key, name in overrides.items():
        try:
            key = ToolKey(raw_key)
        except ValueError:
            raise ConfigurationError(f"unknown tool key in tool_names: {raw_key!r}") from None
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"tool name for {key.value} must be a non-empty string")
        names[key] = name
    return names


def _bind(
    key: ToolKey, op: _Operation, rt: _ToolRuntime, pipeline: ContextPipeline
) -> Callable[[Any], Awaitable[Any]]:
    async def run(params: ToolArgs) -> Any:
        _logger.debug("TraceMem tool %s invoked", key.value)
        if op.resolves_context:
            metadata = await pipeline(key.value, params.model_dump(exclude_none=True))
        else:
            metadata = {}
        return await op.handler(rt, params, metadata)

    return run


def build_tools(config: ToolsConfig | None = None, **overrides: Any) -> dict[str, ToolDefinition]:
    """Build a fresh name -> ToolDefinition mapping for every ledger operation.

    Keyword overrides are applied on top of ``config`` (or a default config).

    Raises:
        ConfigurationError: If no client is given and no credential resolves,
            or if ``tool_names`` contains an unknown key.
    """
    cfg = ToolsConfig(**overrides) if config is None else dataclasses.replace(config, **overrides)
    names = resolve_tool_names(cfg.tool_names)
    client = cfg.client if cfg.client is not None else create_client(cfg.client_options)
    rt = _ToolRuntime(client=client, defaults=cfg.defaults, sanitize=cfg.sanitize)
    pipeline = ContextPipeline(provider=cfg.context, sanitize=cfg.sanitize, runtime=cfg.runtime)

    tools: dict[str, ToolDefinition] = {}
    for key, op in OPERATIONS.items():
        name = names[key]
        if name in tools:
            raise ConfigurationError(f"duplicate tool name: {name!r}")
        tools[name] = ToolDefinition(
            key=key,
            name=name,
            description=op.description,
            parameters=op.parameters,
            _run=_bind(key, op, rt, pipeline),
        )
    return tools
