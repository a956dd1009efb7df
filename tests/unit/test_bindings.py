# tests/unit/test_bindings.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest
from conftest import NetworkError, flush

from opstate.adapters import GetMatcher, PostMatcher, RequestMatcher, use_get, use_post, use_request
from opstate.machines.fetch import FetchMachine
from opstate.machines.post import PostMachine
from opstate.machines.request import RequestMachine


@pytest.mark.asyncio
async def test_use_get_matcher_follows_lifecycle(operation):
    binding = use_get(operation, name="users")
    assert isinstance(binding.machine, FetchMachine)
    assert binding.matcher == GetMatcher(idle=True, fetching=False, finished=False, success=False, fail=False)

    binding.load({"page": 1})
    assert binding.matcher.fetching
    assert operation.inputs == [{"page": 1}]

    # blocking: a second load while fetching is ignored
    binding.load({"page": 2})
    assert len(operation.calls) == 1

    operation.resolve(0, ["ada"])
    await flush()
    assert binding.matcher == GetMatcher(idle=False, fetching=False, finished=True, success=True, fail=False)
    assert binding.data == ["ada"]
    assert binding.error is None

    binding.reset()
    assert binding.matcher.idle
    assert binding.data is None


@pytest.mark.asyncio
async def test_use_get_reports_failure(operation):
    binding = use_get(operation)
    binding.load()
    err = NetworkError()
    operation.fail(0, err)
    await binding.settle()
    assert binding.matcher.fail
    assert binding.matcher.finished
    assert binding.error is err


@pytest.mark.asyncio
async def test_use_post_sends_body(operation):
    binding = use_post(operation)
    assert isinstance(binding.machine, PostMachine)
    binding.post({"title": "hello"})
    assert binding.matcher == PostMatcher(idle=False, posting=True, finished=False, success=False, fail=False)
    assert binding.machine.req_data == {"title": "hello"}

    operation.resolve(0, {"id": 1})
    await flush()
    assert binding.matcher.success
    assert binding.data == {"id": 1}


@pytest.mark.asyncio
async def test_use_request_reports_latest(operation):
    binding = use_request(operation, name="search")
    assert isinstance(binding.machine, RequestMachine)
    binding.load("a")
    binding.load("ab")
    assert binding.matcher == RequestMatcher(idle=False, requesting=True, finished=False, success=False, fail=False)

    operation.resolve(1, "results for ab")
    operation.resolve(0, "results for a")
    await binding.settle()
    assert binding.matcher == RequestMatcher(idle=False, requesting=False, finished=True, success=True, fail=False)
    assert binding.data == "results for ab"


def test_use_request_passes_request_on_loading():
    binding = use_request(lambda: None, request_on_loading=True)
    assert binding.machine.options.request_on_loading
    assert binding.machine.guard.request_on_loading


def test_rename_builds_a_fresh_machine():
    binding = use_get(lambda: "value", name="first")
    binding.load()
    old = binding.machine
    assert binding.data == "value"

    binding.rename("first")
    assert binding.machine is old

    binding.rename("second")
    assert binding.name == "second"
    assert binding.machine is not old
    assert binding.machine.name == "second"
    assert binding.matcher.idle
    assert binding.data is None
    assert not old.machine.started


@pytest.mark.asyncio
async def test_settle_after_rename_with_pending_load(operation):
    binding = use_request(operation, name="first")
    binding.load("q")
    old = binding.machine

    binding.rename("second")
    await old.settle()
    await binding.settle()
    assert binding.matcher.idle
    assert old.current_state() == "Pending"
