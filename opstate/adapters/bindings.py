# opstate/adapters/bindings.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Framework-free bindings exposing machines the way a UI layer consumes them:
entry points, the current data and error, and boolean flags for each state.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, NamedTuple, Optional, TypeVar

from opstate.machines import fetch, post, request
from opstate.machines.base import OperationMachine
from opstate.machines.fetch import FetchMachine
from opstate.machines.post import PostMachine
from opstate.machines.request import RequestMachine

M = TypeVar("M", bound=OperationMachine)


class GetMatcher(NamedTuple):
    idle: bool
    fetching: bool
    finished: bool
    success: bool
    fail: bool


class PostMatcher(NamedTuple):
    idle: bool
    posting: bool
    finished: bool
    success: bool
    fail: bool


class RequestMatcher(NamedTuple):
    idle: bool
    requesting: bool
    finished: bool
    success: bool
    fail: bool


class Binding(Generic[M]):
    """
    Owns one machine built by ``factory`` from the current name. Changing the
    name through ``rename`` replaces the machine with a fresh one.
    """

    def __init__(self, factory: Callable[[Optional[str]], M], name: Optional[str] = None) -> None:
        self._factory = factory
        self._name = name
        self._machine: M = factory(name)

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def machine(self) -> M:
        return self._machine

    def rename(self, name: Optional[str]) -> None:
        if name == self._name:
            return
        self._machine.stop()
        self._name = name
        self._machine = self._factory(name)

    @property
    def data(self) -> Any:
        return self._machine.data

    @property
    def error(self) -> Optional[BaseException]:
        return self._machine.error

    def match_state(self, state: str) -> bool:
        return self._machine.matches(state)

    def reset(self) -> None:
        self._machine.reset()

    async def settle(self) -> None:
        await self._machine.settle()


class GetBinding(Binding[FetchMachine]):
    """A blocking read: ``load`` is ignored while a previous load is pending."""

    def load(self, params: Any = None) -> None:
        self._machine.activate(params)

    @property
    def matcher(self) -> GetMatcher:
        return GetMatcher(
            idle=self.match_state(fetch.IDLE),
            fetching=self.match_state(fetch.PENDING),
            finished=self.match_state(fetch.FINISHED),
            success=self.match_state(fetch.SUCCEEDED),
            fail=self.match_state(fetch.FAILED),
        )


class PostBinding(Binding[PostMachine]):
    def post(self, data: Any) -> None:
        self._machine.activate(data)

    @property
    def matcher(self) -> PostMatcher:
        return PostMatcher(
            idle=self.match_state(post.IDLE),
            posting=self.match_state(post.PENDING),
            finished=self.match_state(post.FINISHED),
            success=self.match_state(post.SUCCEEDED),
            fail=self.match_state(post.FAILED),
        )


class RequestBinding(Binding[RequestMachine]):
    def load(self, params: Any = None) -> None:
        self._machine.activate(params)

    @property
    def matcher(self) -> RequestMatcher:
        success = self.match_state(request.SUCCESS_STATE)
        fail = self.match_state(request.FAIL_STATE)
        return RequestMatcher(
            idle=self.match_state(request.IDLE),
            requesting=self.match_state(request.PENDING),
            finished=success or fail,
            success=success,
            fail=fail,
        )


def use_get(fetch_fn: Callable, name: Optional[str] = None) -> GetBinding:
    return GetBinding(lambda n: FetchMachine(fetch_fn, name=n), name)


def use_post(post_fn: Callable, name: Optional[str] = None) -> PostBinding:
    return PostBinding(lambda n: PostMachine(post_fn, name=n), name)


def use_request(request_fn: Callable, name: Optional[str] = None, request_on_loading: bool = False) -> RequestBinding:
    return RequestBinding(lambda n: RequestMachine(request_fn, name=n, request_on_loading=request_on_loading), name)
