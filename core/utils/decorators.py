"""
Timing helpers.
"""

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


@contextmanager
def timer(label: Optional[str] = None) -> Iterator[Dict[str, float]]:
    """
    Measure wall time of a block.

    The yielded dict gets its "ms" key filled in when the block exits,
    so read it after the ``with`` statement.

    Example:
        >>> with timer("encode") as t:
        ...     do_work()
        >>> elapsed = t["ms"]
    """
    result: Dict[str, float] = {"ms": 0.0}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["ms"] = (time.perf_counter() - start) * 1000.0
        if label:
            logger.debug(f"{label} took {result['ms']:.2f} ms")
