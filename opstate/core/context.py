# opstate/core/context.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")
ReqT = TypeVar("ReqT")


@dataclass
class OperationContext(Generic[T]):
    """
    The mutable record attached to a machine instance. At most one of ``data``
    and ``error`` is set at any time.
    """

    data: Optional[T] = None
    error: Optional[BaseException] = None

    def copy(self) -> "OperationContext[T]":
        """Return a shallow copy, used for snapshots and rollback."""
        return dataclasses.replace(self)

    def restore(self, other: "OperationContext[T]") -> None:
        """Overwrite every field with the values held by ``other``."""
        for f in dataclasses.fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}

    @property
    def consistent(self) -> bool:
        """False only if both ``data`` and ``error`` are set."""
        return self.data is None or self.error is None


@dataclass
class PostContext(OperationContext[T], Generic[ReqT, T]):
    """Context of the write machine: also retains the outbound payload."""

    req_data: Optional[ReqT] = None


@dataclass
class RequestContext(OperationContext[T]):
    """Context of the request machine: also records the latest activation token."""

    last_request_token: Optional[int] = None
