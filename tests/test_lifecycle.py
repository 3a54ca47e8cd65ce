from __future__ import annotations

import asyncio
import logging
from types import SimpleNamespace
from typing import Any, AsyncIterator

import pytest

from tracemem_tools.errors import CloseError, ConfigurationError, DecisionOpenError
from tracemem_tools.lifecycle import (
    DecisionOptions,
    close_decision,
    decision_handler,
    is_streaming_response,
    open_decision,
    with_decision,
)
from tracemem_tools.types import AutomationMode, Outcome, StreamingClose


def test_success_path_commits_once(client) -> None:
    seen: list[tuple[Any, dict[str, Any], str]] = []

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> dict[str, Any]:
        seen.append((request, context, decision_id))
        return {"status": 200}

    wrapped = with_decision(handler, client=client, action="chat_request", actor="api")

    response = asyncio.run(wrapped("req", {"params": {"id": "7"}}))

    assert response == {"status": 200}
    assert seen == [("req", {"params": {"id": "7"}, "decision_id": "dec-1"}, "dec-1")]
    (args, kwargs), = client.calls_named("open")
    assert args == ("chat_request",)
    assert kwargs == {"actor": "api", "automation_mode": None}
    assert client.calls_named("close") == [(("dec-1",), {"outcome": "commit", "reason": None})]


def test_intent_opens_via_create_decision(client) -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return "ok"

    wrapped = with_decision(handler, client=client, intent="support.reply", automation_mode="validate")

    assert asyncio.run(wrapped("req")) == "ok"
    assert client.calls_named("open") == []
    (args, kwargs), = client.calls_named("create_decision")
    assert args == ("support.reply",)
    assert kwargs["automation_mode"] == "validate"


def test_open_failure_skips_handler_and_close(client, caplog: pytest.LogCaptureFixture) -> None:
    boom = ConnectionError("ledger unreachable")
    client.fail_open = boom
    calls: list[Any] = []

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        calls.append(request)
        return "never"

    wrapped = with_decision(handler, client=client)

    with caplog.at_level(logging.ERROR, logger="tracemem_tools.lifecycle"):
        with pytest.raises(ConnectionError) as info:
            asyncio.run(wrapped("req"))

    assert info.value is boom
    assert calls == []
    assert client.calls_named("close") == []
    assert "Failed to open TraceMem decision" in caplog.text


def test_open_without_decision_id_is_open_error(client) -> None:
    async def empty_open(action: str, **kwargs: Any) -> dict[str, Any]:
        return {}

    client.open = empty_open

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return "never"

    with pytest.raises(DecisionOpenError):
        asyncio.run(with_decision(handler, client=client)("req"))


def test_failure_path_aborts_and_reraises_same_error(client) -> None:
    error = ValueError("bad input")

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        raise error

    wrapped = with_decision(handler, client=client)

    with pytest.raises(ValueError) as info:
        asyncio.run(wrapped("req"))

    assert info.value is error
    assert client.calls_named("close") == [(("dec-1",), {"outcome": "abort", "reason": str(error)})]


def test_failure_outcome_is_configurable(client) -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        raise RuntimeError("partial")

    wrapped = with_decision(handler, client=client, close_outcome_on_error="commit")

    with pytest.raises(RuntimeError):
        asyncio.run(wrapped("req"))

    (_, kwargs), = client.calls_named("close")
    assert kwargs == {"outcome": "commit", "reason": "partial"}


def test_close_failure_is_swallowed_on_success(client, caplog: pytest.LogCaptureFixture) -> None:
    client.fail_close = RuntimeError("already closed")

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return "ok"

    with caplog.at_level(logging.WARNING, logger="tracemem_tools.lifecycle"):
        assert asyncio.run(with_decision(handler, client=client)("req")) == "ok"

    assert "already closed" in caplog.text


def test_close_failure_does_not_mask_handler_error(client) -> None:
    client.fail_close = RuntimeError("close failed")
    error = KeyError("missing")

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        raise error

    with pytest.raises(KeyError) as info:
        asyncio.run(with_decision(handler, client=client)("req"))

    assert info.value is error


def test_sync_handlers_are_supported(client) -> None:
    def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return f"handled {decision_id}"

    assert asyncio.run(with_decision(handler, client=client)("req")) == "handled dec-1"
    assert len(client.calls_named("close")) == 1


async def _chunks() -> AsyncIterator[str]:
    yield "a"
    yield "b"


def test_streaming_response_closes_immediately_by_default(client) -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> Any:
        return _chunks()

    response = asyncio.run(with_decision(handler, client=client)("req"))

    assert is_streaming_response(response)
    assert client.calls_named("close") == [(("dec-1",), {"outcome": "commit", "reason": None})]


def test_streaming_response_left_open_for_caller(client) -> None:
    class StreamingResponse:
        def __init__(self) -> None:
            self.body_iterator = _chunks()

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> Any:
        return StreamingResponse()

    wrapped = with_decision(handler, client=client, streaming_close=StreamingClose.CALLER)

    asyncio.run(wrapped("req"))

    assert client.calls_named("close") == []


def test_caller_mode_still_closes_plain_responses(client) -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> dict[str, str]:
        return {"body": "done"}

    wrapped = with_decision(handler, client=client, streaming_close="caller")

    asyncio.run(wrapped("req"))

    assert len(client.calls_named("close")) == 1


def test_options_object_and_overrides(client) -> None:
    options = DecisionOptions(client=client, action="base")

    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return "ok"

    asyncio.run(with_decision(handler, options, action="override")("req"))

    (args, _), = client.calls_named("open")
    assert args == ("override",)


def test_decorator_form(client) -> None:
    @decision_handler(client=client, action="decorated")
    async def post(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return decision_id

    assert post.__name__ == "post"
    assert asyncio.run(post("req")) == "dec-1"


def test_missing_credential_fails_at_wrap_time() -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        return "ok"

    with pytest.raises(ConfigurationError):
        with_decision(handler, action="x")


def test_close_decision_reports_result(client) -> None:
    ok = asyncio.run(close_decision(client, "dec-1", Outcome.COMMIT))
    client.fail_close = RuntimeError("double close")
    failed = asyncio.run(close_decision(client, "dec-1", Outcome.ABORT, reason="why"))

    assert ok.ok
    assert ok.error is None
    assert not failed.ok
    assert isinstance(failed.error, CloseError)
    assert isinstance(failed.error.cause, RuntimeError)
    assert failed.reason == "why"
    assert failed.outcome is Outcome.ABORT


def test_is_streaming_response() -> None:
    def gen() -> Any:
        yield 1

    stream = _chunks()
    assert is_streaming_response(stream)
    assert is_streaming_response(gen())
    assert not is_streaming_response({"body": "x"})
    assert not is_streaming_response("text")
    asyncio.run(stream.aclose())


def test_open_decision_prefers_intent_and_passes_mode(client) -> None:
    handle = asyncio.run(
        open_decision(client, action="ignored", intent="refund order", automation_mode=AutomationMode.EXECUTE)
    )

    assert handle.decision_id == "dec-1"
    assert client.calls_named("open") == []
    assert client.calls_named("create_decision") == [
        (("refund order",), {"actor": None, "automation_mode": "execute"})
    ]


def test_cancelled_handler_still_aborts(client) -> None:
    async def handler(request: Any, context: dict[str, Any], decision_id: str) -> str:
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(with_decision(handler, client=client)("req"))

    assert client.calls_named("close") == [(("dec-1",), {"outcome": "abort", "reason": ""})]


def test_open_decision_accepts_camel_case_handle_object(client, monkeypatch: pytest.MonkeyPatch) -> None:
    async def open_(action: str, **kwargs: Any) -> Any:
        return SimpleNamespace(decisionId="dec-9")

    monkeypatch.setattr(client, "open", open_)

    handle = asyncio.run(open_decision(client, action="chat_request"))

    assert handle.decision_id == "dec-9"
