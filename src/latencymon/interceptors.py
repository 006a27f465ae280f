"""
Helpers that wrap application code with monitor calls.

``monitored`` decorates a function; ``monitor_scope`` wraps a block. Both call
``start`` before the work and exactly one of ``complete`` or ``error`` after
it, re-raising any exception.
"""

import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from .processing.monitor import LatencyMonitor

if TYPE_CHECKING:
    from .processing.factory import MonitorFactory


def _resolve_monitor(category: str, factory: Optional["MonitorFactory"]) -> LatencyMonitor:
    if factory is not None:
        return factory.get_monitor(category)
    from .handle import get_monitor

    return get_monitor(category)


@contextmanager
def monitor_scope(category: str, method_name: Optional[str] = None,
                  factory: Optional["MonitorFactory"] = None) -> Iterator[LatencyMonitor]:
    """
    Time the enclosed block as one execution of ``category``.

    Without a factory the process-wide factory from ``latencymon.handle`` is used.
    """
    monitor = _resolve_monitor(category, factory)
    monitor.start(method_name or category)
    try:
        yield monitor
    except BaseException as e:
        monitor.error(e)
        raise
    else:
        monitor.complete()


def monitored(category: Optional[str] = None, method_name: Optional[str] = None,
              factory: Optional["MonitorFactory"] = None) -> Callable:
    """
    Decorator timing every call of the wrapped function.

    The category defaults to the function's qualified name and the method
    name to ``module.qualname``. May be used bare (``@monitored``) or called.
    """
    if callable(category):
        return monitored()(category)

    def decorator(func: Callable) -> Callable:
        work_category = category or func.__qualname__
        call_site = method_name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            monitor = _resolve_monitor(work_category, factory)
            monitor.start(call_site)
            try:
                result = func(*args, **kwargs)
            except BaseException as e:
                monitor.error(e)
                raise
            monitor.complete()
            return result

        return wrapper

    return decorator
