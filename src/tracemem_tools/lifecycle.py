"""Decision lifecycle wrapper for request handlers.

A wrapped handler runs inside one decision:

    NOT_OPENED -> OPEN -> CLOSED(commit) | CLOSED(abort)

Design notes:
- Open failures propagate; the handler never runs and no close is attempted
- Close is best-effort on every path and reported as a CloseResult
- Handler exceptions (cancellation included) are re-raised unchanged after
  the close attempt
- Streaming responses close immediately unless StreamingClose.CALLER is set
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Mapping

from pydantic import BaseModel, ConfigDict

from .client import create_client
from .config import ClientOptions
from .errors import CloseError
from .protocols import LedgerClient
from .types import (
    AutomationMode,
    CloseResult,
    DecisionHandle,
    Outcome,
    StreamingClose,
    as_decision_handle,
)

_logger = logging.getLogger(__name__)

DEFAULT_ACTION = "default"

DecisionRouteHandler = Callable[[Any, dict[str, Any], str], Any]
RouteHandler = Callable[..., Awaitable[Any]]


class DecisionOptions(BaseModel):
    """Options for with_decision()."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    client: Any = None
    client_options: ClientOptions | None = None
    action: str = DEFAULT_ACTION
    intent: str | None = None
    actor: str | None = None
    automation_mode: AutomationMode | None = None
    close_outcome_on_error: Outcome = Outcome.ABORT
    streaming_close: StreamingClose = StreamingClose.IMMEDIATE


def is_streaming_response(response: object) -> bool:
    """Best guess at whether a handler result is still being produced."""
    if inspect.isasyncgen(response) or inspect.isgenerator(response):
        return True
    # Starlette/FastAPI StreamingResponse
    if hasattr(response, "body_iterator"):
        return True
    return hasattr(response, "__aiter__")


async def open_decision(
    client: LedgerClient,
    *,
    action: str = DEFAULT_ACTION,
    intent: str | None = None,
    actor: str | None = None,
    automation_mode: AutomationMode | None = None,
) -> DecisionHandle:
    """Open a decision by intent when given, else by action.

    Failures are logged and re-raised as-is.
    """
    mode = automation_mode.value if automation_mode is not None else None
    try:
        if intent:
            raw = await client.create_decision(intent, actor=actor, automation_mode=mode)
        else:
            raw = await client.open(action, actor=actor, automation_mode=mode)
        return as_decision_handle(raw)
    except Exception as exc:
        _logger.error("Failed to open TraceMem decision: %s", exc)
        raise


async def close_decision(
    client: LedgerClient,
    decision_id: str,
    outcome: Outcome,
    reason: str | None = None,
) -> CloseResult:
    """Attempt to close a decision. Never raises; failures land in the result."""
    try:
        await client.close(decision_id, outcome=outcome.value, reason=reason)
    except Exception as exc:
        error = CloseError(decision_id, exc)
        _logger.warning("%s", error)
        return CloseResult(decision_id=decision_id, outcome=outcome, reason=reason, error=error)
    return CloseResult(decision_id=decision_id, outcome=outcome, reason=reason)


def with_decision(
    handler: DecisionRouteHandler,
    options: DecisionOptions | None = None,
    **overrides: Any,
) -> RouteHandler:
    """Wrap ``handler(request, context, decision_id)`` in a decision lifecycle.

    The returned coroutine function takes ``(request, context=None)``; the
    handler receives ``context`` with ``decision_id`` injected plus the id as a
    third argument. The client is resolved here, so a missing credential
    raises ConfigurationError before any request is served.
    """
    if options is None:
        opts = DecisionOptions(**overrides)
    elif overrides:
        opts = DecisionOptions.model_validate({**dict(options), **overrides})
    else:
        opts = options
    client: LedgerClient = (
        opts.client if opts.client is not None else create_client(opts.client_options)
    )

    @wraps(handler)
    async def wrapper(request: Any, context: Mapping[str, Any] | None = None) -> Any:
        handle = await open_decision(
            client,
            action=opts.action,
            intent=opts.intent,
            actor=opts.actor,
            automation_mode=opts.automation_mode,
        )
        decision_id = handle.decision_id

        try:
            response = handler(request, {**(context or {}), "decision_id": decision_id}, decision_id)
            if inspect.isawaitable(response):
                response = await response
        except BaseException as exc:
            await close_decision(client, decision_id, opts.close_outcome_on_error, reason=str(exc))
            raise

        if is_streaming_response(response) and opts.streaming_close is StreamingClose.CALLER:
            _logger.debug("Leaving decision %s open for streaming response", decision_id)
            return response

        await close_decision(client, decision_id, Outcome.COMMIT)
        return response

    return wrapper


def decision_handler(
    options: DecisionOptions | None = None, **overrides: Any
) -> Callable[[DecisionRouteHandler], RouteHandler]:
    """Decorator form of with_decision().

    Usage:
        @decision_handler(action="chat_request")
        async def post(request, context, decision_id):
            ...
    """

    def decorator(handler: DecisionRouteHandler) -> RouteHandler:
        return with_decision(handler, options, **overrides)

    return decorator
