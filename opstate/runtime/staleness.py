# opstate/runtime/staleness.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Activation tokens and the guard that discards out-of-order results."""

import itertools
import threading
from typing import Optional


class ActivationClock:
    """
    Logical clock minting strictly increasing activation tokens.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start + 1)
        self._last = start
        self._lock = threading.Lock()

    def tick(self) -> int:
        with self._lock:
            self._last = next(self._counter)
            return self._last

    @property
    def last(self) -> int:
        return self._last


class StalenessGuard:
    """
    Decides whether the result of an activation may still be applied.

    In strict mode (the default) only the most recently issued activation may
    report. In relaxed mode (``request_on_loading``) every activation may report
    unless a newer one has already reported. In both modes a result can never
    replace the result of an activation issued after it, so the context ends
    up holding the result of the most recently issued request.

    ``invalidate`` makes every activation issued so far stale.
    """

    def __init__(self, request_on_loading: bool = False, clock: Optional[ActivationClock] = None) -> None:
        self._relaxed = request_on_loading
        self._clock = clock or ActivationClock()
        self._latest = self._clock.last
        self._applied = self._clock.last
        self._floor = self._clock.last

    @property
    def request_on_loading(self) -> bool:
        return self._relaxed

    @property
    def latest(self) -> int:
        """Token of the most recently issued activation."""
        return self._latest

    @property
    def applied(self) -> int:
        """Token of the most recent activation whose result was accepted."""
        return self._applied

    def mint(self) -> int:
        """
        Reserve a token without starting an activation. A reserved token that
        is never passed to ``begin`` leaves a gap in the sequence and nothing
        else.
        """
        return self._clock.tick()

    def begin(self, token: Optional[int] = None) -> int:
        """
        Record the token of a new activation as the latest, minting one when
        ``token`` is omitted.
        """
        if token is None:
            token = self.mint()
        elif token <= self._latest:
            raise ValueError(f"Activation token {token} is not newer than {self._latest}")
        self._latest = token
        return token

    def is_stale(self, token: int) -> bool:
        if token <= self._floor:
            return True
        if self._relaxed:
            return token <= self._applied
        return token != self._latest

    def accept(self, token: int) -> bool:
        """
        Check ``token`` and, if its result may be applied, record it as applied.
        """
        if self.is_stale(token):
            return False
        self._applied = token
        return True

    def invalidate(self) -> None:
        self._floor = self._latest
