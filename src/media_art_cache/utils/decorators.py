"""
Decorators shared by the engine and its collaborators.

handle_errors turns a failing best-effort step (sidecar copies, bus calls)
into a logged default value. track_performance records request timings on
the owning object.
"""

import functools
import logging
import time
from collections import deque
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, cast

F = TypeVar('F', bound=Callable[..., Any])

# Timings kept per method
PERFORMANCE_HISTORY = 1000


def _owner_logger(func: Callable, args: tuple) -> logging.Logger:
    owner = args[0] if args else None
    return getattr(owner, 'logger', None) or logging.getLogger(func.__module__)


def _describe_call(func: Callable, args: tuple) -> str:
    """'Owner.method' followed by the path arguments of the call"""
    owner = type(args[0]).__name__ + "." if args and hasattr(args[0], 'logger') else ""
    paths = [str(arg) for arg in args[1:] if isinstance(arg, Path)]
    if paths:
        return f"{owner}{func.__name__}({', '.join(paths)})"
    return f"{owner}{func.__name__}"


def handle_errors(
    log_level: str = "warning",
    return_on_error: Optional[Any] = None,
    error_types: tuple = (Exception,)
) -> Callable[[F], F]:
    """
    Log ``error_types`` raised by the wrapped call and return ``return_on_error``.

    Other exceptions propagate unchanged. The traceback is attached only
    when the logger is at DEBUG.

    Example:
        @handle_errors(log_level="info", return_on_error=False, error_types=(OSError,))
        def copy_to_local(self, media_path, cache_path, local_uri) -> bool:
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except error_types as e:
                logger = _owner_logger(func, args)
                getattr(logger, log_level)(
                    f"{_describe_call(func, args)} failed: {e}",
                    exc_info=logger.isEnabledFor(logging.DEBUG)
                )
                return return_on_error

        return cast(F, wrapper)

    return decorator


def track_performance(threshold_ms: Optional[float] = None) -> Callable[[F], F]:
    """
    Record the wall time of each call in ``owner._performance_metrics``.

    Calls slower than ``threshold_ms`` are logged as warnings. Timings are
    recorded for failed calls too.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                if threshold_ms and elapsed_ms > threshold_ms:
                    _owner_logger(func, args).warning(
                        f"{func.__name__} took {elapsed_ms:.0f}ms (threshold: {threshold_ms:.0f}ms)"
                    )

                metrics = getattr(args[0], '_performance_metrics', None) if args else None
                if metrics is not None:
                    metrics.setdefault(func.__name__, deque(maxlen=PERFORMANCE_HISTORY)).append(elapsed_ms)

        return cast(F, wrapper)

    return decorator
