"""Parameter contracts for each tool.

These models describe tool arguments to the agent runtime (via JSON schema)
and validate incoming arguments before they reach the ledger client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .types import AutomationMode, Outcome


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OpenArgs(ToolArgs):
    action: str | None = Field(
        default=None, description='The type of action to perform (e.g. "refactor", "investigate")'
    )
    intent: str | None = Field(default=None, description="Specific intent override")
    actor: str | None = Field(default=None, description="Who is acting; defaults to the configured actor")
    automation_mode: AutomationMode | None = Field(
        default=None, description="propose, execute or validate; defaults to the configured mode"
    )

    @model_validator(mode="after")
    def _action_or_intent(self) -> "OpenArgs":
        if not (self.action and self.action.strip()) and not (self.intent and self.intent.strip()):
            raise ValueError("either action or intent is required")
        return self


class NoteArgs(ToolArgs):
    decision_id: str = Field(description="The ID of the active decision")
    message: str = Field(description="The content of the note")
    kind: str | None = Field(default=None, description='Kind of note (e.g. "thought", "error")')
    data: dict[str, Any] | None = Field(default=None, description="Additional data context")


class ReadArgs(ToolArgs):
    decision_id: str
    product: str
    purpose: str
    query: Any = None


class EvaluateArgs(ToolArgs):
    decision_id: str
    policy: str
    inputs: dict[str, Any]


class RequestApprovalArgs(ToolArgs):
    decision_id: str
    message: str = Field(description="Explanation for why approval is needed")


class WriteArgs(ToolArgs):
    decision_id: str
    product: str
    purpose: str
    mutation: Any
    idempotency_key: str | None = None


class DecisionRefArgs(ToolArgs):
    decision_id: str


class CloseArgs(ToolArgs):
    decision_id: str
    outcome: Outcome
    reason: str | None = None


class ProductsListArgs(ToolArgs):
    purpose: str | None = None


class ProductGetArgs(ToolArgs):
    name: str


class NoArgs(ToolArgs):
    pass
