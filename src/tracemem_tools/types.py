"""Typed models for tracemem-tools."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, field_validator

from .errors import DecisionOpenError

# Request context is a plain dict: reserved keys are ``tags``, ``external_refs``
# and ``metadata``; everything else is caller-defined.
RequestContext = dict[str, Any]

RESERVED_CONTEXT_KEYS = ("tags", "external_refs", "metadata")


class AutomationMode(str, Enum):
    """How autonomously the calling agent is allowed to act."""

    PROPOSE = "propose"
    EXECUTE = "execute"
    VALIDATE = "validate"


class Outcome(str, Enum):
    """Terminal classification of a decision."""

    COMMIT = "commit"
    ABORT = "abort"


class StreamingClose(str, Enum):
    """What the lifecycle wrapper does when a handler returns a stream."""

    IMMEDIATE = "immediate"
    CALLER = "caller"


class ToolKey(str, Enum):
    """Ledger operations exposed as tools. Values are the default tool names."""

    OPEN = "tracememOpen"
    NOTE = "tracememNote"
    READ = "tracememRead"
    EVALUATE = "tracememEvaluate"
    REQUEST_APPROVAL = "tracememRequestApproval"
    WRITE = "tracememWrite"
    TRACE = "tracememTrace"
    RECEIPT = "tracememReceipt"
    CLOSE = "tracememClose"
    PRODUCTS_LIST = "tracememProductsList"
    PRODUCT_GET = "tracememProductGet"
    CAPABILITIES = "tracememCapabilities"


DEFAULT_TOOL_NAMES: dict[ToolKey, str] = {key: key.value for key in ToolKey}


class DecisionHandle(BaseModel):
    """Handle returned when a decision is opened."""

    model_config = {"frozen": True}

    decision_id: str

    @field_validator("decision_id")
    @classmethod
    def _decision_id_non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("decision_id must be a non-empty string")
        return value


def as_decision_handle(raw: object) -> DecisionHandle:
    """Normalize whatever a ledger client returned from open/create."""
    if isinstance(raw, DecisionHandle):
        return raw
    if isinstance(raw, Mapping):
        candidate = raw.get("decision_id", raw.get("decisionId"))
    else:
        candidate = getattr(raw, "decision_id", None) or getattr(raw, "decisionId", None)
    if not isinstance(candidate, str) or not candidate.strip():
        raise DecisionOpenError("ledger returned no decision_id")
    return DecisionHandle(decision_id=candidate)


@dataclass(frozen=True, slots=True)
class CloseResult:
    """Result of a best-effort close. Never raised, only logged and returned."""

    decision_id: str
    outcome: Outcome
    reason: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
