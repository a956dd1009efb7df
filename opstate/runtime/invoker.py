# opstate/runtime/invoker.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Sequence, Set

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class TaskInvoker:
    """
    Runs operations on the asyncio event loop without blocking the machine that
    started them, and reports each outcome through a pair of callbacks.

    An operation may return an awaitable, which is scheduled as a task, or a
    plain value, which counts as an already-resolved result. A synchronous raise
    counts as a failure. There is no timeout: an operation that never completes
    keeps its task outstanding until ``cancel_all`` is called.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        :param loop: Loop to schedule tasks on. The running loop is used when omitted.
        """
        self._loop = loop
        self._tasks: Set[asyncio.Task] = set()

    @property
    def outstanding(self) -> int:
        """Number of operations started but not yet finished."""
        return len(self._tasks)

    def spawn(
        self,
        fn: Callable[..., Any],
        args: Sequence[Any],
        on_done: Callback,
        on_error: Callback,
    ) -> Optional[asyncio.Task]:
        """
        Call ``fn(*args)`` and route its outcome to ``on_done`` or ``on_error``.

        :return: The task awaiting the result, or None if the outcome was
                 known immediately.
        """
        try:
            result = fn(*args)
        except Exception as e:
            on_error(e)
            return None

        if not inspect.isawaitable(result):
            on_done(result)
            return None

        try:
            loop = self._loop or asyncio.get_running_loop()
        except RuntimeError as e:
            if inspect.iscoroutine(result):
                result.close()
            on_error(e)
            return None

        task = loop.create_task(self._run(result, on_done, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, awaitable: Any, on_done: Callback, on_error: Callback) -> None:
        try:
            value = await awaitable
        except asyncio.CancelledError:
            raise
        except Exception as e:
            outcome, callback = e, on_error
        else:
            outcome, callback = value, on_done

        try:
            callback(outcome)
        except Exception:
            logger.exception("Delivering an operation outcome failed")
            raise

    async def join(self) -> None:
        """
        Wait until no operation is outstanding, including operations started
        while waiting. Cancelled operations count as finished. Re-raises the
        first failure raised while delivering an outcome.
        """
        while self._tasks:
            done, _ = await asyncio.wait(list(self._tasks))
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    raise task.exception()

    def cancel_all(self) -> None:
        """Cancel every outstanding operation. Their outcomes are never delivered."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
