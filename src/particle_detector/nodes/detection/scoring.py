"""Per-maximum blob features and background statistics."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from particle_detector.models import (
    BackgroundStats,
    Candidate,
    ProcessingError,
    ProcessingStage,
)
from particle_detector.utils import filters
from particle_detector.utils.grid import Grid

from .local_maxima import local_maxima_mask


def background_statistics(
    grid: Grid,
    maxima_mask: NDArray[np.bool_],
    stage: ProcessingStage = ProcessingStage.DETECT,
) -> BackgroundStats | ProcessingError:
    """Mean and sample standard deviation of the finite non-maximum pixels."""
    background = grid.values[~maxima_mask]
    background = background[np.isfinite(background)]
    n = int(background.size)
    if n < 2:
        return ProcessingError(
            stage=stage,
            error_type="insufficient_background",
            recoverable=False,
            message=f"Need at least 2 finite background pixels, found {n}",
            details={"n_background": n, "n_maxima": int(np.count_nonzero(maxima_mask))},
        )

    mean = float(np.mean(background))
    sd = float(np.std(background, ddof=1))
    if sd == 0.0:
        return ProcessingError(
            stage=stage,
            error_type="insufficient_background",
            recoverable=False,
            message="Background has zero variance; significance is undefined",
            details={"n_background": n, "background_mean": mean},
        )
    return BackgroundStats(mean=mean, sd=sd, n_pixels=n)


def summarize_local_maxima(
    grid: Grid,
    window_size: int,
    thresh_coef: float,
    stage: ProcessingStage = ProcessingStage.DETECT,
) -> tuple[list[Candidate], BackgroundStats] | ProcessingError:
    """
    Build one Candidate per local maximum of ``grid``.

    Hessian response and window-mean intensity are read straight out of the
    derived grids at each maximum's coordinate.

    Returns:
        (candidates in row-major order, background statistics) or
        ProcessingError (invalid_kernel, dimension_mismatch,
        empty_candidate_set, insufficient_background)
    """
    err = filters.check_grid(grid, stage) or filters.validate_window(window_size, stage)
    if err is not None:
        return err

    mask = local_maxima_mask(grid, int(window_size))
    if not mask.any():
        return ProcessingError(
            stage=stage,
            error_type="empty_candidate_set",
            recoverable=True,
            message="No local maxima found",
            details={"window_size": int(window_size), "shape": list(grid.shape)},
        )

    background = background_statistics(grid, mask, stage)
    if isinstance(background, ProcessingError):
        return background

    hessian = filters.hessian_determinant(grid, stage)
    if isinstance(hessian, ProcessingError):
        return hessian
    local_mean = filters.box_blur(grid, window_size, stage)
    if isinstance(local_mean, ProcessingError):
        return local_mean

    ys, xs = np.nonzero(mask)
    intensity = grid.values[ys, xs]
    d_hess = hessian.values[ys, xs]
    mean_int = local_mean.values[ys, xs]
    score = mean_int * d_hess
    significance = thresh_coef * (intensity - background.mean) / background.sd

    candidates = [
        Candidate(
            x=int(x),
            y=int(y),
            intensity=float(i),
            hessian_response=float(h),
            local_mean_intensity=float(m),
            score=float(s),
            significance=float(sig),
            is_significant=bool(i > sig),
        )
        for x, y, i, h, m, s, sig in zip(xs, ys, intensity, d_hess, mean_int, score, significance)
    ]
    return candidates, background
