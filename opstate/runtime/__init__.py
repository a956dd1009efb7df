"""
Runtime package: running operations on asyncio and deciding which results are stale.
"""

from .invoker import TaskInvoker
from .staleness import ActivationClock, StalenessGuard

__all__ = ["ActivationClock", "StalenessGuard", "TaskInvoker"]
