"""Configuration bundles and credential resolution."""

from __future__ import annotations

import os
from typing import Any, Callable, Mapping

from pydantic import BaseModel, Field

from .types import AutomationMode, Outcome

API_KEY_ENV_VAR = "TRACEMEM_API_KEY"
DEFAULT_ENDPOINT = "https://mcp.tracemem.com"
DEFAULT_TIMEOUT_SEC: float = 30.0
DEFAULT_USER_AGENT = "tracemem-tools-python/0.1.0"

EnvResolver = Callable[[], str | None]


def api_key_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    """Read the credential from ``TRACEMEM_API_KEY``; empty values count as unset."""
    env = os.environ if environ is None else environ
    value = env.get(API_KEY_ENV_VAR)
    if value is None or not value.strip():
        return None
    return value


class ClientOptions(BaseModel):
    """Options for constructing a ledger client.

    ``client_factory`` receives the resolved options and returns a client;
    when unset the bundled JSON-RPC client is used.
    """

    model_config = {"frozen": True}

    api_key: str | None = Field(default=None, repr=False)
    endpoint: str = DEFAULT_ENDPOINT
    timeout_sec: float | None = DEFAULT_TIMEOUT_SEC
    headers: dict[str, str] = Field(default_factory=dict)
    user_agent: str | None = DEFAULT_USER_AGENT
    client_factory: Callable[["ClientOptions"], Any] | None = None


class ToolDefaults(BaseModel):
    """Defaults applied when a tool call does not specify them."""

    model_config = {"frozen": True}

    actor: str | None = None
    automation_mode: AutomationMode | None = None
    close_outcome_on_error: Outcome = Outcome.ABORT
