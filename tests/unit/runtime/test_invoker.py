# tests/unit/runtime/test_invoker.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from unittest.mock import MagicMock

import pytest

from opstate.runtime.invoker import TaskInvoker


def test_plain_value_is_delivered_immediately():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()
    assert invoker.spawn(lambda x: x + 1, (1,), on_done, on_error) is None
    on_done.assert_called_once_with(2)
    on_error.assert_not_called()


def test_synchronous_raise_is_a_failure():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()
    err = ValueError("nope")

    def op():
        raise err

    invoker.spawn(op, (), on_done, on_error)
    on_error.assert_called_once_with(err)
    on_done.assert_not_called()


def test_coroutine_without_running_loop_is_a_failure():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()

    async def op():
        return 1

    invoker.spawn(op, (), on_done, on_error)
    on_done.assert_not_called()
    assert isinstance(on_error.call_args[0][0], RuntimeError)


@pytest.mark.asyncio
async def test_awaitable_result_is_delivered():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()

    async def op(x):
        await asyncio.sleep(0)
        return x * 3

    task = invoker.spawn(op, (5,), on_done, on_error)
    assert task is not None
    assert invoker.outstanding == 1
    await invoker.join()
    assert invoker.outstanding == 0
    on_done.assert_called_once_with(15)
    on_error.assert_not_called()


@pytest.mark.asyncio
async def test_awaitable_failure_is_delivered_verbatim():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()
    err = ConnectionError("reset by peer")

    async def op():
        raise err

    invoker.spawn(op, (), on_done, on_error)
    await invoker.join()
    on_error.assert_called_once_with(err)


@pytest.mark.asyncio
async def test_spawn_does_not_block():
    invoker = TaskInvoker()
    gate = asyncio.Event()
    on_done = MagicMock()

    async def op():
        await gate.wait()
        return "open"

    invoker.spawn(op, (), on_done, MagicMock())
    invoker.spawn(op, (), on_done, MagicMock())
    assert invoker.outstanding == 2
    on_done.assert_not_called()

    gate.set()
    await invoker.join()
    assert on_done.call_count == 2


@pytest.mark.asyncio
async def test_cancel_all_suppresses_outcomes():
    invoker = TaskInvoker()
    on_done, on_error = MagicMock(), MagicMock()

    async def op():
        await asyncio.sleep(10)

    task = invoker.spawn(op, (), on_done, on_error)
    invoker.cancel_all()
    with pytest.raises(asyncio.CancelledError):
        await task
    on_done.assert_not_called()
    on_error.assert_not_called()
    assert invoker.outstanding == 0


@pytest.mark.asyncio
async def test_callback_failure_surfaces_on_join():
    invoker = TaskInvoker()

    async def op():
        return 1

    def broken(value):
        raise RuntimeError("delivery failed")

    invoker.spawn(op, (), broken, MagicMock())
    with pytest.raises(RuntimeError, match="delivery failed"):
        await invoker.join()


@pytest.mark.asyncio
async def test_join_after_cancel_all_returns():
    invoker = TaskInvoker()

    async def op():
        await asyncio.sleep(10)

    invoker.spawn(op, (), MagicMock(), MagicMock())
    invoker.spawn(op, (), MagicMock(), MagicMock())
    invoker.cancel_all()
    await invoker.join()
    assert invoker.outstanding == 0


@pytest.mark.asyncio
async def test_join_treats_task_cancelled_while_waiting_as_finished():
    invoker = TaskInvoker()
    on_done = MagicMock()

    async def slow():
        await asyncio.sleep(10)

    async def fast():
        return "ok"

    slow_task = invoker.spawn(slow, (), MagicMock(), MagicMock())
    invoker.spawn(fast, (), on_done, MagicMock())
    asyncio.get_running_loop().call_soon(slow_task.cancel)
    await invoker.join()
    on_done.assert_called_once_with("ok")
    assert invoker.outstanding == 0
