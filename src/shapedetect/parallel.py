"""
Fork-join fan-out over contours.

Small batches run inline. Larger ones go to a thread pool whose workers write
into pre-sized, index-addressed slots; a sequential pass then keeps the
accepted results in input order.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from shapedetect.tracer import get_tracer

T = TypeVar("T")
R = TypeVar("R")


def compact(slots: Sequence[Optional[R]]) -> List[R]:
    """Drop empty slots, preserving order."""
    return [result for result in slots if result is not None]


def map_contours(func: Callable[[T], Optional[R]], items: Sequence[T],
                 min_items: int = 10, max_workers: int = 4) -> List[R]:
    """
    Apply func to every item and return the non-None results in input order.

    Fans out to a thread pool only when there are more than min_items items.
    Exceptions raised by func propagate to the caller.
    """
    tracer = get_tracer()

    slots: List[Optional[R]] = [None] * len(items)

    if len(items) <= min_items or max_workers <= 1:
        for i, item in enumerate(items):
            slots[i] = func(item)
        return compact(slots)

    tracer.event(f"Fanning out {len(items)} contours to {max_workers} workers", level="DEBUG")

    def work(index: int) -> None:
        slots[index] = func(items[index])

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="shapedetect") as executor:
        futures = [executor.submit(work, i) for i in range(len(items))]
        for future in futures:
            future.result()

    return compact(slots)
