# src/headmap_shell/core/loop_runner.py
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAIN_LOOP: Optional[asyncio.AbstractEventLoop] = None
_THREAD: Optional[threading.Thread] = None


def ensure_background_loop() -> asyncio.AbstractEventLoop:
    """
    Ensures a persistent asyncio event loop is running on a background thread
    and returns it. Batch runs live on this loop so the prompt stays usable.
    """
    global _MAIN_LOOP, _THREAD
    if _MAIN_LOOP is not None:
        return _MAIN_LOOP

    loop = asyncio.new_event_loop()

    def _run_loop(loop_: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop_)
        loop_.run_forever()

    t = threading.Thread(target=_run_loop, args=(loop,), name="headmap-loop", daemon=True)
    t.start()

    _MAIN_LOOP = loop
    _THREAD = t
    logger.debug("Background asyncio event loop started.")
    return loop


def submit_to_main_loop(coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future:
    """Schedules a coroutine on the background loop without waiting for it."""
    loop = ensure_background_loop()
    return asyncio.run_coroutine_threadsafe(coro, loop)


def run_on_main_loop(coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
    """
    Executes a coroutine on the persistent background loop and waits for the result.
    Falls back to asyncio.run() if no background loop exists.
    """
    if _MAIN_LOOP is not None:
        fut = asyncio.run_coroutine_threadsafe(coro, _MAIN_LOOP)
        return fut.result(timeout)

    return asyncio.run(coro)


def call_on_main_loop(fn: Callable[[], Any]) -> None:
    """Hands a plain callable to the background loop (thread-safe, fire-and-forget)."""
    if _MAIN_LOOP is None:
        raise RuntimeError("No background event loop is running.")
    _MAIN_LOOP.call_soon_threadsafe(fn)


def read_on_main_loop(fn: Callable[[], T], timeout: float | None = 5.0) -> T:
    """Evaluates a callable on the background loop thread and returns its value."""
    async def _call() -> T:
        return fn()

    return run_on_main_loop(_call(), timeout)


def stop_background_loop() -> None:
    global _MAIN_LOOP, _THREAD
    if _MAIN_LOOP is None:
        return
    _MAIN_LOOP.call_soon_threadsafe(_MAIN_LOOP.stop)
    if _THREAD is not None:
        _THREAD.join(timeout=5)
    _MAIN_LOOP = None
    _THREAD = None
    logger.debug("Background asyncio event loop stopped.")
