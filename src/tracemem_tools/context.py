"""Request context merging and per-call context resolution.

Resolution and redaction are separate transforms composed by ContextPipeline:

    provider(tool_name, args) -> resolve_context -> redact_obvious_secrets

Each step can be tested or replaced on its own.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ContextProviderError
from .protocols import ContextProvider
from .redaction import redact_obvious_secrets
from .types import RESERVED_CONTEXT_KEYS, RequestContext

_logger = logging.getLogger(__name__)


def merge_contexts(*contexts: Mapping[str, Any] | None) -> RequestContext:
    """Left-fold contexts into one.

    ``tags`` concatenate in argument order (a bare string counts as one tag),
    ``external_refs`` and ``metadata`` shallow-merge with later keys winning,
    and every other field is last-write-wins. ``None`` arguments are skipped. Only the tags/refs/metadata
    part of the fold is associative; scalar overrides depend on argument order.
    """
    merged: RequestContext = {"tags": [], "external_refs": {}, "metadata": {}}
    for ctx in contexts:
        if ctx is None:
            continue
        for key, value in ctx.items():
            if key not in RESERVED_CONTEXT_KEYS:
                merged[key] = value
        tags = ctx.get("tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        merged["tags"] = [*merged["tags"], *tags]
        merged["external_refs"] = {**merged["external_refs"], **(ctx.get("external_refs") or {})}
        merged["metadata"] = {**merged["metadata"], **(ctx.get("metadata") or {})}
    return merged


async def resolve_context(
    provider: ContextProvider | None,
    tool_name: str,
    args: Mapping[str, Any],
    runtime: str | None = None,
) -> RequestContext:
    """Call the context provider. Never raises: failures yield an empty context."""
    if provider is None:
        return {}
    try:
        if runtime is None:
            result = provider(tool_name, args)
        else:
            result = provider(tool_name, args, runtime=runtime)
        if inspect.isawaitable(result):
            result = await result
        if result is not None and not isinstance(result, Mapping):
            raise TypeError(f"expected a mapping, got {type(result).__name__}")
    except Exception as exc:
        _logger.warning("TraceMem context provider failed: %s", ContextProviderError(tool_name, exc))
        return {}
    if result is None:
        return {}
    return dict(result)


@dataclass(frozen=True, slots=True)
class ContextPipeline:
    """Resolve then (optionally) redact the context for one tool call."""

    provider: ContextProvider | None = None
    sanitize: bool = True
    runtime: str | None = None

    async def __call__(self, tool_name: str, args: Mapping[str, Any]) -> RequestContext:
        ctx = await resolve_context(self.provider, tool_name, args, self.runtime)
        if self.sanitize:
            return redact_obvious_secrets(ctx)
        return ctx
