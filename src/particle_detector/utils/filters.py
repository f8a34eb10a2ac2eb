"""
Windowed filters on Grids.

Every windowed operation uses the same boundary policy: edge pixels are
replicated outward (OpenCV ``BORDER_REPLICATE``), so outputs always keep the
input shape and no artificial zeros enter near the border.

Kernels are applied in correlation orientation (kernel centre on the pixel,
no flip). All kernels used by the pipeline are symmetric.

All functions follow the Result | ProcessingError pattern.
"""

from __future__ import annotations

from typing import Any

import cv2
import numpy as np
from numpy.typing import ArrayLike, NDArray

from particle_detector.models import ProcessingError, ProcessingStage
from particle_detector.utils.grid import Grid

BORDER = cv2.BORDER_REPLICATE

# Central second differences (3x3 stencils)
_D_XX = np.array([[0.0, 0.0, 0.0], [1.0, -2.0, 1.0], [0.0, 0.0, 0.0]])
_D_YY = _D_XX.T.copy()
_D_XY = np.array([[0.25, 0.0, -0.25], [0.0, 0.0, 0.0], [-0.25, 0.0, 0.25]])


def check_grid(
    grid: Grid,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> ProcessingError | None:
    """Return a dimension_mismatch error for grids that are not non-empty 2-D."""
    if grid.is_empty:
        return ProcessingError(
            stage=stage,
            error_type="dimension_mismatch",
            recoverable=False,
            message=f"Grid must be 2-D with non-zero width and height, got shape {grid.values.shape}",
            details={"shape": list(grid.values.shape)},
        )
    return None


def _invalid_kernel(message: str, stage: ProcessingStage, **details: Any) -> ProcessingError:
    return ProcessingError(
        stage=stage,
        error_type="invalid_kernel",
        recoverable=False,
        message=message,
        details=details,
    )


def validate_kernel(
    kernel: ArrayLike,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> NDArray[np.float64] | ProcessingError:
    """Coerce a kernel to a square, odd-sized, finite float64 matrix."""
    try:
        k = np.asarray(kernel, dtype=np.float64)
    except (TypeError, ValueError) as e:
        return _invalid_kernel(f"Kernel is not numeric: {e}", stage)

    if k.ndim != 2 or k.size == 0:
        return _invalid_kernel(
            f"Kernel must be a non-empty 2-D matrix, got shape {k.shape}", stage, shape=list(k.shape)
        )
    rows, cols = k.shape
    if rows != cols:
        return _invalid_kernel(f"Kernel must be square, got {rows}x{cols}", stage, shape=[rows, cols])
    if rows % 2 == 0:
        return _invalid_kernel(
            f"Kernel must have odd dimensions, got {rows}x{cols}", stage, shape=[rows, cols]
        )
    if not np.all(np.isfinite(k)):
        return _invalid_kernel("Kernel has non-finite coefficients", stage, shape=[rows, cols])
    return k


def validate_window(
    size: int,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> ProcessingError | None:
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        return _invalid_kernel(f"Window size must be an integer, got {size!r}", stage, size=str(size))
    if size <= 0 or size % 2 == 0:
        return _invalid_kernel(
            f"Window size must be a positive odd integer, got {size}", stage, size=int(size)
        )
    return None


def convolve(
    grid: Grid,
    kernel: ArrayLike,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> Grid | ProcessingError:
    """
    Weighted neighbourhood sum with the kernel centred on each pixel.

    Args:
        grid: Input grid
        kernel: Square, odd-sized coefficient matrix
        stage: Processing stage for error reporting

    Returns:
        New Grid of the same shape or ProcessingError
    """
    err = check_grid(grid, stage)
    if err is not None:
        return err
    k = validate_kernel(kernel, stage)
    if isinstance(k, ProcessingError):
        return k
    out = cv2.filter2D(grid.to_array(), cv2.CV_64F, k, borderType=BORDER)
    return Grid(out)


def box_blur(
    grid: Grid,
    size: int,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> Grid | ProcessingError:
    """
    Mean filter over a size x size window. ``size == 1`` is the identity.

    Applied as a direct correlation with a uniform kernel so a non-finite
    sample only spoils the windows that contain it.
    """
    err = check_grid(grid, stage) or validate_window(size, stage)
    if err is not None:
        return err
    kernel = np.full((int(size), int(size)), 1.0 / (int(size) * int(size)))
    out = cv2.filter2D(grid.to_array(), cv2.CV_64F, kernel, borderType=BORDER)
    return Grid(out)


def value_range(grid: Grid) -> tuple[float, float] | None:
    """(min, max) over finite samples, or None when there are none."""
    finite = grid.values[np.isfinite(grid.values)]
    if finite.size == 0:
        return None
    return float(np.min(finite)), float(np.max(finite))


def standardize(
    grid: Grid,
    stage: ProcessingStage = ProcessingStage.PREPROCESS,
) -> Grid | ProcessingError:
    """
    Map samples linearly onto [0, 1] using the finite min and max.

    A flat grid (max == min) is shifted to all zeros instead of divided.
    Non-finite samples stay non-finite.
    """
    err = check_grid(grid, stage)
    if err is not None:
        return err
    bounds = value_range(grid)
    if bounds is None:
        return ProcessingError(
            stage=stage,
            error_type="no_finite_samples",
            recoverable=False,
            message="Grid has no finite samples to standardize",
            details={"shape": list(grid.shape)},
        )
    lo, hi = bounds
    if hi == lo:
        return grid - lo
    return (grid - lo) / (hi - lo)


def hessian_determinant(
    grid: Grid,
    stage: ProcessingStage = ProcessingStage.DETECT,
) -> Grid | ProcessingError:
    """
    Determinant of the per-pixel Hessian, Ixx * Iyy - Ixy^2.

    Second derivatives come from 3x3 central differences. Large positive
    values mark radially symmetric blobs; edges give values near zero or
    negative.
    """
    err = check_grid(grid, stage)
    if err is not None:
        return err
    src = grid.to_array()
    ixx = cv2.filter2D(src, cv2.CV_64F, _D_XX, borderType=BORDER)
    iyy = cv2.filter2D(src, cv2.CV_64F, _D_YY, borderType=BORDER)
    ixy = cv2.filter2D(src, cv2.CV_64F, _D_XY, borderType=BORDER)
    return Grid(ixx * iyy - ixy * ixy)
