"""Run tool coroutines from synchronous callers.

Sync agent frameworks call tools from plain threads. Every such call is routed
to one daemon thread owning a long-lived event loop, so a shared ledger client
and its connection pool stay bound to a single loop.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Coroutine, TypeVar

R = TypeVar("R")


class _LoopThread:
    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    def owns_current_thread(self) -> bool:
        return self._thread is not None and self._thread is threading.current_thread()

    def loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None or not self._loop.is_running():
                self._start()
            assert self._loop is not None
            return self._loop

    def _start(self) -> None:
        loop = asyncio.new_event_loop()
        started = threading.Event()

        def runner() -> None:
            asyncio.set_event_loop(loop)
            loop.call_soon(started.set)
            loop.run_forever()

        self._thread = threading.Thread(target=runner, name=self._name, daemon=True)
        self._loop = loop
        self._thread.start()
        started.wait()


_runner = _LoopThread("tracemem-tools-loop")


def run_sync(coro: Coroutine[object, object, R]) -> R:
    """Block until ``coro`` finishes on the shared background loop.

    Raises:
        RuntimeError: If called from a running event loop or from the
            background loop thread itself (either would deadlock).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        coro.close()
        raise RuntimeError("run_sync cannot be called from within an async event loop")
    if _runner.owns_current_thread():
        coro.close()
        raise RuntimeError("run_sync cannot be called from the background loop thread")
    return asyncio.run_coroutine_threadsafe(coro, _runner.loop()).result()
