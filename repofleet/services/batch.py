"""
Sequential or pooled execution of independent per-repository work.

Shared by the fetch and changelog services. Each item's work must never
raise for expected failures; it returns a result describing what
happened. Results come back in input order, progress messages in the
order work finishes.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Generator, List, Optional, Sequence, TypeVar

T = TypeVar('T')
R = TypeVar('R')


def run_batch(
    items: Sequence[T],
    work: Callable[[T], R],
    label: Callable[[T], str],
    describe: Callable[[R], str],
    parallel: int = 1,
    verb: str = "Processing",
) -> Generator[str, None, List[R]]:
    """
    Run ``work`` over ``items``.

    Args:
        items: Work items, in reporting order
        work: Function producing one result per item
        label: Short display name for an item
        describe: Status line for a finished result
        parallel: Worker count (1 = sequential, in order)
        verb: Progress verb, e.g. "Fetching"

    Yields:
        Progress messages

    Returns:
        Results ordered like ``items``
    """
    total = len(items)
    results: List[Optional[R]] = [None] * total

    if parallel > 1 and total > 1:
        yield f"{verb} {total} repositories (parallel={parallel})..."
        with ThreadPoolExecutor(max_workers=parallel) as executor:
            futures = {executor.submit(work, item): index for index, item in enumerate(items)}
            for future in as_completed(futures):
                result = future.result()
                results[futures[future]] = result
                yield describe(result)
    else:
        for index, item in enumerate(items):
            yield f"[{index + 1}/{total}] {verb} {label(item)}..."
            result = work(item)
            results[index] = result
            yield describe(result)

    return results
