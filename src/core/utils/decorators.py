"""
Timing helpers shared by services and detectors.
"""

import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def timer() -> Generator[dict, None, None]:
    """
    Context manager to measure execution time.

    Usage:
        with timer() as t:
            run_operation()
        logger.debug(f"Took {t['ms']}ms")

    Yields:
        Dictionary with 'ms' key holding the elapsed time in milliseconds
        (at least 1 once the block has finished)
    """
    result = {"ms": 0}
    start_time = time.perf_counter()
    try:
        yield result
    finally:
        result["ms"] = max(1, int(round((time.perf_counter() - start_time) * 1000)))
