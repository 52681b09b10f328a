"""
Parallel fill of the divergence-index grid.

The column range [0, image_width) is halved recursively until each piece is
narrower than ``image_width // 8``. Every leaf range is computed by one
worker, which is the only writer of those columns of the shared grid, so no
locking is needed. The caller joins on all leaves before returning.

Backends:
  "process"  ProcessPoolExecutor writing into a SharedMemory-backed array (default)
  "thread"   ThreadPoolExecutor writing into one numpy array
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from multiprocessing import shared_memory
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from escape_fractals.fractal import FractalSpec

logger = logging.getLogger(__name__)

GRID_DTYPE = np.int32
DEFAULT_GRANULARITY = 8
BACKENDS = ("thread", "process")
DEFAULT_BACKEND = "process"


class ColumnRange(NamedTuple):
    start: int
    stop: int

    @property
    def width(self) -> int:
        return self.stop - self.start


def default_threshold(image_width: int) -> int:
    return max(1, image_width // DEFAULT_GRANULARITY)


def split_columns(start: int, stop: int, threshold: int) -> List[ColumnRange]:
    """
    Halve [start, stop) until every piece is narrower than threshold.

    Single columns are never split further. The returned ranges are
    disjoint, contiguous and ordered, and together cover [start, stop).
    """
    if stop - start <= 1 or stop - start < threshold:
        return [ColumnRange(start, stop)]
    middle = (start + stop) // 2
    return split_columns(start, middle, threshold) + split_columns(middle, stop, threshold)


def compute_columns(spec: FractalSpec, grid: np.ndarray, columns: ColumnRange) -> ColumnRange:
    """Compute every cell of the given columns and write them in place."""
    height = spec.image_height
    for i in range(columns.start, columns.stop):
        grid[i, :] = [spec.compute_divergence(spec.point_at(i, j)) for j in range(height)]
    return columns


def _compute_shared_columns(shm_name: str, shape: Tuple[int, int], spec: FractalSpec,
                            columns: ColumnRange) -> ColumnRange:
    # runs in a worker process
    shm = shared_memory.SharedMemory(name=shm_name)
    try:
        grid = np.ndarray(shape, dtype=GRID_DTYPE, buffer=shm.buf)
        compute_columns(spec, grid, columns)
        del grid
    finally:
        shm.close()
    return columns


def _fill_threaded(spec: FractalSpec, grid: np.ndarray, leaves: List[ColumnRange], workers: int):
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(compute_columns, spec, grid, leaf) for leaf in leaves]
        for future in futures:
            future.result()


def _fill_processes(spec: FractalSpec, grid: np.ndarray, leaves: List[ColumnRange], workers: int):
    shm = shared_memory.SharedMemory(create=True, size=grid.nbytes)
    try:
        shared = np.ndarray(grid.shape, dtype=GRID_DTYPE, buffer=shm.buf)
        shared[:] = 0
        with ProcessPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_compute_shared_columns, shm.name, grid.shape, spec, leaf)
                for leaf in leaves
            ]
            for future in futures:
                future.result()
        grid[:] = shared
        del shared
    finally:
        shm.close()
        shm.unlink()


def fill_divergence_grid(
    spec: FractalSpec,
    *,
    workers: Optional[int] = None,
    threshold: Optional[int] = None,
    backend: str = DEFAULT_BACKEND,
) -> np.ndarray:
    """
    Divergence index of every cell, as an int32 array of shape
    (image_width, image_height). Cell (i, j) samples
    x = x_min + step * i, y = y_max - step * j.

    Args:
        spec: the fractal to sample
        workers: pool size, defaults to os.cpu_count()
        threshold: leaf width bound, defaults to image_width // 8
        backend: "process" (default) runs leaves in worker processes and
            scales with cores; "thread" runs them in threads of this process,
            which share the GIL and so do not compute in parallel

    The result does not depend on workers, threshold or backend.
    """
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend: {backend!r} (expected one of {BACKENDS})")
    if workers is None:
        workers = os.cpu_count() or 1
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if threshold is None:
        threshold = default_threshold(spec.image_width)
    if threshold < 1:
        raise ValueError(f"threshold must be >= 1, got {threshold}")

    grid = np.zeros(spec.shape, dtype=GRID_DTYPE)
    leaves = split_columns(0, spec.image_width, threshold)
    logger.debug("Split %d columns into %d leaves (threshold=%d)",
                 spec.image_width, len(leaves), threshold)

    start = time.perf_counter()
    if backend == "thread":
        _fill_threaded(spec, grid, leaves, workers)
    else:
        _fill_processes(spec, grid, leaves, workers)
    elapsed = time.perf_counter() - start

    logger.info("Filled %dx%d %s grid with %d %s workers in %.2fs",
                spec.image_width, spec.image_height, spec.kind.name,
                workers, backend, elapsed)
    return grid
