"""
parallel.py — Data-Parallel Pass Execution
===========================================
Every pass computes each output cell from its own cell and four neighbours
in the read buffer. No cell depends on another cell's output in the same
pass, so the grid can be cut into horizontal bands of rows and each band
evaluated independently.

`PassExecutor.run(kernel, src, dst)` does exactly that: one band per worker
thread, then waits for all of them before returning. That wait is the
barrier between passes. numpy releases the GIL inside its vectorised loops,
so bands genuinely overlap on multi-core machines.

With workers=1 the kernel runs inline over the whole grid.
"""

from concurrent.futures import BrokenExecutor, ThreadPoolExecutor, wait

import numpy as np

from .errors import ComputeResourceLost


def row_bands(height: int, n: int) -> list:
    """Split range(height) into at most n contiguous, non-empty slices."""
    n = max(1, min(n, height))
    edges = np.linspace(0, height, n + 1).astype(int)
    return [slice(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


class PassExecutor:
    """Runs pass kernels over row bands on a thread pool."""

    def __init__(self, workers: int = 1):
        self.workers = int(workers)
        self._pool = None
        self._closed = False
        if self.workers > 1:
            self._pool = ThreadPoolExecutor(max_workers=self.workers,
                                            thread_name_prefix="dyeflow-pass")

    def run(self, kernel, src: np.ndarray, dst: np.ndarray, *args):
        """
        Evaluate `kernel(src, dst, rows, *args)` over every band of rows.
        Returns once every band has been written.
        """
        if self._closed:
            raise RuntimeError("executor closed")
        if src is dst or np.may_share_memory(src, dst):
            raise ValueError("Pass read and write buffers must not alias")

        height = src.shape[0]
        if self._pool is None:
            kernel(src, dst, slice(0, height), *args)
            return

        try:
            futures = [self._pool.submit(kernel, src, dst, rows, *args)
                       for rows in row_bands(height, self.workers)]
        except (BrokenExecutor, RuntimeError) as e:
            raise ComputeResourceLost(f"Pass worker pool unusable: {e}") from e

        wait(futures)
        for f in futures:
            f.result()

    def shutdown(self):
        """Deliberate close. Later run() calls raise RuntimeError, not ComputeResourceLost."""
        self._closed = True
        if self._pool is not None:
            self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
