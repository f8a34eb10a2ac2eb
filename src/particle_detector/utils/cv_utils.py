"""
OpenCV utility functions around the detection core.

This module provides the thin I/O layer the core never touches:
- Image I/O with validation (any OpenCV-readable file, 8/16-bit/float)
- Conversion to a float grayscale Grid and region-of-interest cropping
- Display helpers for debug overlays

All functions follow the Result | ProcessingError pattern for error handling.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeAlias

import cv2
import numpy as np
from numpy.typing import NDArray

from particle_detector.models import ProcessingError, ProcessingStage, RegionOfInterest
from particle_detector.utils.grid import Grid

# =============================================================================
# TYPE ALIASES
# =============================================================================

# Use Any for dtype to avoid MatLike compatibility issues with OpenCV
Image: TypeAlias = NDArray[Any]  # BGR or grayscale image, any depth
GrayImage: TypeAlias = NDArray[Any]  # Single channel


# =============================================================================
# SECTION 1: IMAGE I/O
# =============================================================================


def load_image(
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> Image | ProcessingError:
    """
    Load an image from disk, keeping its bit depth.

    Multi-page files (e.g. OME-TIFF stacks) yield their first page.

    Args:
        path: Path to image file
        stage: Processing stage for error reporting

    Returns:
        Image array (grayscale or BGR, original dtype) or ProcessingError
    """
    path = Path(path)

    if not path.exists():
        return ProcessingError(
            stage=stage,
            error_type="file_not_found",
            recoverable=False,
            message=f"Image file not found: {path}",
            details={"path": str(path)},
        )

    try:
        img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)

        if img is None or img.size == 0:
            return ProcessingError(
                stage=stage,
                error_type="imread_failed",
                recoverable=False,
                message=f"Failed to read image (may be corrupted): {path}",
                details={"path": str(path)},
            )
        return img

    except PermissionError:
        return ProcessingError(
            stage=stage,
            error_type="permission_denied",
            recoverable=False,
            message=f"Permission denied reading: {path}",
            details={"path": str(path)},
        )
    except Exception as e:
        return ProcessingError(
            stage=stage,
            error_type="io_error",
            recoverable=False,
            message=f"Error reading image: {e}",
            details={"path": str(path), "error": str(e)},
        )


def save_image(
    image: Image,
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.CLASSIFY,
) -> Path | ProcessingError:
    """
    Save an image to disk.

    Args:
        image: Image to save
        path: Output path
        stage: Processing stage for error reporting

    Returns:
        Path to saved file or ProcessingError
    """
    path = Path(path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        success = cv2.imwrite(str(path), image)
        if not success:
            return ProcessingError(
                stage=stage,
                error_type="imwrite_failed",
                recoverable=False,
                message=f"Failed to write image: {path}",
                details={"path": str(path)},
            )
        return path

    except PermissionError:
        return ProcessingError(
            stage=stage,
            error_type="permission_denied",
            recoverable=False,
            message=f"Permission denied writing: {path}",
            details={"path": str(path)},
        )
    except Exception as e:
        return ProcessingError(
            stage=stage,
            error_type="io_error",
            recoverable=False,
            message=f"Error writing image: {e}",
            details={"path": str(path), "error": str(e)},
        )


# =============================================================================
# SECTION 2: GRID CONVERSION
# =============================================================================


def to_grayscale(image: Image) -> GrayImage:
    """Collapse colour channels to a single float64 intensity plane."""
    if image.ndim == 2:
        return image.astype(np.float64)

    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0].astype(np.float64)

    # cvtColor only supports 8U/16U/32F, so go through float32 for other depths
    src = image.astype(np.float32) if image.dtype not in (np.uint8, np.uint16) else image
    code = cv2.COLOR_BGRA2GRAY if channels == 4 else cv2.COLOR_BGR2GRAY
    return cv2.cvtColor(src, code).astype(np.float64)


def crop_roi(
    image: GrayImage,
    roi: RegionOfInterest,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> GrayImage | ProcessingError:
    """
    Crop to inclusive bounds, clipped to the image.

    Args:
        image: Single-channel image
        roi: Inclusive 0-based bounds
        stage: Processing stage for error reporting

    Returns:
        Cropped copy or ProcessingError if nothing remains
    """
    height, width = image.shape[:2]
    x0 = max(0, roi.x_min)
    x1 = min(width - 1, roi.x_max)
    y0 = max(0, roi.y_min)
    y1 = min(height - 1, roi.y_max)

    if x1 < x0 or y1 < y0:
        return ProcessingError(
            stage=stage,
            error_type="empty_roi",
            recoverable=False,
            message=f"Region of interest does not overlap the {width}x{height} image",
            details={"roi": roi.model_dump(), "width": width, "height": height},
        )
    return image[y0 : y1 + 1, x0 : x1 + 1].copy()


def load_grid(
    path: str | Path,
    roi: RegionOfInterest | None = None,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> Grid | ProcessingError:
    """Load an image file as a float grayscale Grid, optionally cropped."""
    image = load_image(path, stage=stage)
    if isinstance(image, ProcessingError):
        return image

    gray = to_grayscale(image)
    if roi is not None:
        cropped = crop_roi(gray, roi, stage=stage)
        if isinstance(cropped, ProcessingError):
            return cropped
        gray = cropped
    return Grid(gray)


# =============================================================================
# SECTION 3: DISPLAY HELPERS
# =============================================================================


def to_display_u8(values: NDArray[Any]) -> NDArray[np.uint8]:
    """Min-max scale finite samples to 0..255 (non-finite become 0)."""
    a = np.asarray(values, dtype=np.float64)
    finite = np.isfinite(a)
    if not finite.any():
        return np.zeros(a.shape, dtype=np.uint8)
    mn = float(np.min(a[finite]))
    mx = float(np.max(a[finite]))
    if mx <= mn:
        return np.zeros(a.shape, dtype=np.uint8)
    scaled = np.where(finite, (a - mn) * (255.0 / (mx - mn)), 0.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def ensure_bgr(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Ensure an 8-bit image is 3-channel BGR."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image
