"""Sliding-window local maxima."""

from __future__ import annotations

import cv2
import numpy as np
from numpy.typing import NDArray

from particle_detector.models import LocalMaximum, ProcessingError, ProcessingStage
from particle_detector.utils import filters
from particle_detector.utils.grid import Grid

_NEIGHBOURS = tuple((dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0))
_RING = np.ones((3, 3), dtype=np.uint8)


def _shifted(a: NDArray, dy: int, dx: int, fill: object) -> NDArray:
    """``out[y, x] == a[y + dy, x + dx]``; samples from outside the grid are ``fill``."""
    h, w = a.shape
    out = np.full_like(a, fill)
    out[max(0, -dy) : h - max(0, dy), max(0, -dx) : w - max(0, dx)] = a[
        max(0, dy) : h - max(0, -dy), max(0, dx) : w - max(0, -dx)
    ]
    return out


def local_maxima_mask(grid: Grid, window_size: int) -> NDArray[np.bool_]:
    """
    Boolean mask of local maxima.

    A pixel is a candidate when it equals the maximum of its window (clipped
    at the border). Candidates are grouped into 8-connected plateaus of equal
    value, and a plateau is kept when at least one of its pixels has a
    strictly lower 8-neighbour. Every pixel of a kept plateau is reported,
    however wide the plateau is compared to the window; plateaus with no
    lower rim (a flat grid, a flat background) are dropped.

    With ``window_size == 1`` every pixel is the maximum of its own window,
    so the result is every plateau that rises above a neighbour.

    Non-finite samples are never maxima and are ignored by their neighbours.
    """
    finite = grid.finite_mask()
    src = np.where(finite, grid.values, -np.inf)
    footprint = np.ones((window_size, window_size), dtype=np.uint8)
    win_max = cv2.dilate(src, footprint, borderType=cv2.BORDER_REPLICATE)
    candidate = finite & (src == win_max)

    # Replicated edge samples equal the pixel itself, so they never count as lower.
    lowest_neighbour = cv2.erode(
        np.where(finite, grid.values, np.inf), _RING, borderType=cv2.BORDER_REPLICATE
    )
    kept = candidate & (lowest_neighbour < src)

    # Grow kept pixels across equal-valued candidate neighbours until stable.
    while True:
        grown = kept.copy()
        for dy, dx in _NEIGHBOURS:
            same = _shifted(src, dy, dx, np.nan) == src
            grown |= candidate & same & _shifted(kept, dy, dx, False)
        if np.array_equal(grown, kept):
            return kept
        kept = grown


def local_maxima(
    grid: Grid,
    window_size: int,
    stage: ProcessingStage = ProcessingStage.DETECT,
) -> list[LocalMaximum] | ProcessingError:
    """
    Local maxima of ``grid`` in row-major (y, then x) order.

    Args:
        grid: Input grid
        window_size: Positive odd side length of the square search window
        stage: Processing stage for error reporting

    Returns:
        One LocalMaximum per qualifying pixel, or ProcessingError
    """
    err = filters.check_grid(grid, stage) or filters.validate_window(window_size, stage)
    if err is not None:
        return err

    ys, xs = np.nonzero(local_maxima_mask(grid, int(window_size)))
    return [
        LocalMaximum(x=int(x), y=int(y), intensity=float(grid.values[y, x]))
        for y, x in zip(ys, xs)
    ]
