from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from tracemem_tools.config import API_KEY_ENV_VAR


@dataclass
class FakeProducts:
    calls: list[tuple[str, Any]] = field(default_factory=list)

    async def list(self, purpose: str | None = None) -> Any:
        self.calls.append(("list", purpose))
        return [{"name": "customers", "purpose": purpose}]

    async def get(self, name: str) -> Any:
        self.calls.append(("get", name))
        return {"name": name}


@dataclass
class FakeLedgerClient:
    """In-memory ledger client recording every call."""

    calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = field(default_factory=list)
    products: FakeProducts = field(default_factory=FakeProducts)
    decision_id: str = "dec-1"
    fail_open: BaseException | None = None
    fail_close: BaseException | None = None

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def calls_named(self, name: str) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    async def open(self, action: str, **kwargs: Any) -> Any:
        self._record("open", action, **kwargs)
        if self.fail_open is not None:
            raise self.fail_open
        return {"decision_id": self.decision_id}

    async def create_decision(self, intent: str, **kwargs: Any) -> Any:
        self._record("create_decision", intent, **kwargs)
        if self.fail_open is not None:
            raise self.fail_open
        return {"decisionId": self.decision_id}

    async def note(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("note", decision_id, **kwargs)
        return None

    async def read(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("read", decision_id, **kwargs)
        return {"rows": [{"id": 1}], "product": kwargs["product"]}

    async def evaluate(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("evaluate", decision_id, **kwargs)
        return {"outcome": "allow", "policy": kwargs["policy"]}

    async def request_approval(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("request_approval", decision_id, **kwargs)
        return {"approval_id": "apr-1"}

    async def write(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("write", decision_id, **kwargs)
        return {"written": 1}

    async def trace(self, decision_id: str) -> Any:
        self._record("trace", decision_id)
        return {"decision_id": decision_id, "events": ["opened"]}

    async def receipt(self, decision_id: str) -> Any:
        self._record("receipt", decision_id)
        return {"decision_id": decision_id, "status": "committed"}

    async def close(self, decision_id: str, **kwargs: Any) -> Any:
        self._record("close", decision_id, **kwargs)
        if self.fail_close is not None:
            raise self.fail_close
        return None

    async def capabilities(self) -> Any:
        self._record("capabilities")
        return {"version": "1", "features": ["decisions"]}


@pytest.fixture
def client() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture(autouse=True)
def _no_ambient_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's real credential out of the tests."""
    monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)

