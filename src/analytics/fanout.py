"""
Concurrent fan-out of independent read tasks
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, Optional

from .errors import QueryTimeoutError

logger = logging.getLogger(__name__)


def fan_out(
    tasks: Dict[str, Callable[[], Any]],
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Run independent callables concurrently and join their results by name.

    The first exception raised by a task is re-raised once the remaining tasks
    are cancelled. Tasks still running after `timeout` seconds raise
    QueryTimeoutError.
    """
    if not tasks:
        return {}

    workers = max(1, min(max_workers or len(tasks), len(tasks)))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analytics")
    futures = {name: executor.submit(task) for name, task in tasks.items()}
    deadline = time.monotonic() + timeout if timeout is not None else None

    results: Dict[str, Any] = {}
    try:
        for name, future in futures.items():
            remaining = None
            if deadline is not None:
                remaining = max(deadline - time.monotonic(), 0)
            try:
                results[name] = future.result(timeout=remaining)
            except FuturesTimeoutError:
                pending = [key for key, f in futures.items() if not f.done()]
                logger.warning(f"Fan-out timed out after {timeout}s, pending: {pending}")
                raise QueryTimeoutError(timeout, pending)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return results
