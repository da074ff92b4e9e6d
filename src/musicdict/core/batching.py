"""Windowed fan-out with per-item isolation.

Batch generation processes items in fixed-size windows: every item of a window
runs concurrently on a thread pool, and the next window starts only when the
current one has fully settled. A failing item produces an ``Err`` carrying its
error message instead of aborting the window, and results are returned in
input order.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TypeVar

from musicdict.core.result import Result, err, ok
from musicdict.core.settings import get_logger

T = TypeVar("T")
R = TypeVar("R")

logger = get_logger(__name__)


def iter_windows(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split ``items`` into consecutive slices of at most ``size`` elements."""
    if size < 1:
        raise ValueError("window size must be at least 1")
    return [items[start : start + size] for start in range(0, len(items), size)]


def run_windowed(
    items: Sequence[T],
    fn: Callable[[T], R],
    *,
    window_size: int = 5,
) -> list[Result[R, str]]:
    """Apply ``fn`` to every item, ``window_size`` items at a time.

    Parameters
    ----------
    items:
        Inputs to process. Items share no state with each other.
    fn:
        Worker function. Any exception it raises is captured as an ``Err``
        holding ``str(exc)``.
    window_size:
        Maximum number of items in flight at once.

    Returns
    -------
    list[Result[R, str]]
        One result per input, in input order.
    """
    results: list[Result[R, str] | None] = [None] * len(items)
    offset = 0

    for window in iter_windows(items, window_size):
        with ThreadPoolExecutor(max_workers=len(window)) as pool:
            futures: dict[Future[R], int] = {
                pool.submit(fn, item): offset + i for i, item in enumerate(window)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = ok(future.result())
                except Exception as exc:
                    logger.warning("Batch item %d failed: %s", index, exc)
                    results[index] = err(str(exc) or exc.__class__.__name__)
        offset += len(window)

    return [r for r in results if r is not None]


__all__ = ["iter_windows", "run_windowed"]
