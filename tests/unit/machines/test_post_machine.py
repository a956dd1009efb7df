# tests/unit/machines/test_post_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest
from conftest import NetworkError, flush

from opstate.core.context import PostContext
from opstate.machines.post import PostMachine, post_machine_definition


@pytest.mark.asyncio
async def test_post_stores_payload_and_response(operation):
    m = PostMachine(operation)
    assert m.activate({"title": "hello"}) is True
    assert m.current_state() == "Pending"
    assert m.req_data == {"title": "hello"}
    assert operation.inputs == [{"title": "hello"}]

    operation.resolve(0, {"id": 9})
    await flush()

    ctx = m.current_context()
    assert isinstance(ctx, PostContext)
    assert m.current_state() == "Finished.Succeeded"
    assert ctx.data == {"id": 9}
    assert ctx.req_data == {"title": "hello"}
    assert ctx.error is None


@pytest.mark.asyncio
async def test_repeated_post_restarts_pending(operation):
    m = PostMachine(operation)
    m.activate("first")
    assert m.activate("second") is True
    assert m.current_state() == "Pending"
    assert operation.inputs == ["first", "second"]
    assert m.req_data == "second"

    # No guard: whichever completion arrives last wins.
    operation.resolve(1, "second-result")
    await flush()
    assert m.current_context().data == "second-result"

    operation.resolve(0, "first-result")
    await flush()
    assert m.current_state() == "Finished.Succeeded"
    assert m.current_context().data == "first-result"


@pytest.mark.asyncio
async def test_failed_post_then_repost(operation):
    m = PostMachine(operation)
    m.activate({"n": 1})
    err = NetworkError("timeout")
    operation.fail(0, err)
    await flush()
    assert m.current_state() == "Finished.Failed"
    assert m.error is err

    m.activate({"n": 2})
    assert m.error is None
    assert m.req_data == {"n": 2}
    operation.resolve(1, "saved")
    await m.settle()
    assert m.data == "saved"


@pytest.mark.asyncio
async def test_reset_clears_payload(operation):
    m = PostMachine(operation)
    m.activate("payload")
    operation.resolve(0, "done")
    await flush()

    m.reset()
    ctx = m.current_context()
    assert m.current_state() == "Idle"
    assert (ctx.data, ctx.error, ctx.req_data) == (None, None, None)


def test_definition_allows_request_while_pending():
    d = post_machine_definition()
    rows = {(r.source, r.event, r.target, r.actions) for r in d.transitions()}
    assert ("Pending", "REQUEST", "Pending", ("store_request",)) in rows
    assert ("Idle", "REQUEST", "Pending", ("store_request",)) in rows
    assert ("Finished", "RESET", "Idle", ()) in rows
    assert isinstance(d.create_context(), PostContext)
