"""
Per-domain fault isolation for report builders
"""

import logging
from typing import Callable, List, Optional, TypeVar

from .errors import DataAccessFault

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_fallback(
    domain: str,
    build_fn: Callable[[], T],
    empty_default: Callable[[], T],
    failures: Optional[List[str]] = None,
) -> T:
    """Build a report, substituting its empty shape when a read fails.

    Only DataAccessFault is absorbed; anything else propagates. The failed
    domain is logged and appended to `failures` when given.
    """
    try:
        return build_fn()
    except DataAccessFault as e:
        logger.error(
            f"Data access fault while building {domain} report, returning empty default: {e}",
            extra={"domain": domain, "fault_code": e.code, "fault_details": e.details},
        )
        if failures is not None:
            failures.append(domain)
        return empty_default()
