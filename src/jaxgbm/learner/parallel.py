"""Fork-join helpers over a static partition of a row range."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable


def static_partition(num_rows: int, nthread: int) -> list[tuple[int, int]]:
    """Split ``[0, num_rows)`` into at most ``nthread`` contiguous chunks.

    Chunks have size ``ceil(num_rows / nthread)`` except possibly the last.
    """
    if num_rows <= 0:
        return []
    nthread = max(1, min(nthread, num_rows))
    chunk = -(-num_rows // nthread)
    return [(begin, min(begin + chunk, num_rows)) for begin in range(0, num_rows, chunk)]


def parallel_for(num_rows: int, nthread: int, body: Callable[[int, int], None]) -> None:
    """Run ``body(begin, end)`` on every chunk and wait for all of them.

    ``body`` must only write rows ``[begin, end)`` of its outputs. The first
    exception raised by a chunk propagates to the caller.
    """
    chunks = static_partition(num_rows, nthread)
    if len(chunks) <= 1:
        for begin, end in chunks:
            body(begin, end)
        return
    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        futures = [executor.submit(body, begin, end) for begin, end in chunks]
        for future in futures:
            future.result()
