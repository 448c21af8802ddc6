"""
Fire-and-forget dispatch for the session's two network calls.

Inside a running event loop the coroutine becomes a task; a strong reference
is kept until it finishes and any exception it raises is logged. Outside a
loop (scripts, synchronous callers) each coroutine gets its own daemon thread
with a private event loop, so the caller never waits on it and two jobs never
wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine, Optional, Set, Union

logger = logging.getLogger(__name__)

BackgroundJob = Union[asyncio.Task, threading.Thread]

_background_tasks: Set[asyncio.Task] = set()
_background_threads: Set[threading.Thread] = set()
_threads_lock = threading.Lock()


def spawn_background(coro: Coroutine[Any, Any, Any], name: str) -> BackgroundJob:
    """
    Start coro without awaiting it.

    Args:
        coro: Coroutine to run
        name: Task or thread name used in logs

    Returns:
        The scheduled task, or the started thread when no loop is running
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return _spawn_thread(coro, name)

    task = loop.create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_on_done)
    return task


def _spawn_thread(coro: Coroutine[Any, Any, Any], name: str) -> threading.Thread:
    def runner():
        try:
            asyncio.run(coro)
        except Exception:
            logger.exception("Background job %s failed", name)
        finally:
            with _threads_lock:
                _background_threads.discard(thread)

    thread = threading.Thread(target=runner, name=name, daemon=True)
    with _threads_lock:
        _background_threads.add(thread)
    thread.start()
    return thread


def _on_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.debug("Background job %s cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background job %s failed: %s", task.get_name(), exc, exc_info=exc)


def pending_tasks() -> Set[asyncio.Task]:
    """Tasks started by spawn_background that have not finished yet."""
    return set(_background_tasks)


def pending_threads() -> Set[threading.Thread]:
    """Threads started by spawn_background (no running loop) that are still alive."""
    with _threads_lock:
        return set(_background_threads)


def join_background(timeout: Optional[float] = None) -> None:
    """
    Wait for thread-run jobs, e.g. before a script exits.

    Args:
        timeout: Seconds to wait per thread (None waits indefinitely)
    """
    for thread in pending_threads():
        thread.join(timeout)
