from pydantic import BaseModel, ConfigDict, Field, field_validator

from particle_detector import config
from particle_detector.utils.grid import Grid

from .detection import (
    BackgroundStats,
    Candidate,
    DetectionResult,
    LocalMaximum,
    ProcessingError,
)

Kernel = tuple[tuple[float, ...], ...]


class DetectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    window_size: int = config.DEFAULT_WINDOW_SIZE
    thresh_coef: float = config.DEFAULT_THRESH_COEF
    percentile: float = Field(default=config.DEFAULT_PERCENTILE, ge=0.0, le=1.0)

    # Enhancement cascade
    box_size: int = config.DEFAULT_BOX_SIZE
    smoothing_kernel: Kernel = config.SMOOTHING_KERNEL
    laplacian_kernel: Kernel = config.LAPLACIAN_KERNEL

    @field_validator("window_size", "box_size")
    @classmethod
    def _odd_positive(cls, value: int) -> int:
        if value < 1 or value % 2 == 0:
            raise ValueError(f"window sizes must be positive odd integers, got {value}")
        return value


class RegionOfInterest(BaseModel):
    """Inclusive, 0-based crop bounds in image pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x_min: int
    x_max: int
    y_min: int
    y_max: int


class DetectionState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    image_path: str | None = None
    roi: RegionOfInterest | None = None
    config: DetectionConfig = DetectionConfig()

    grid: Grid | None = None
    standardized: Grid | None = None
    enhanced: Grid | None = None

    maxima: list[LocalMaximum] | None = None
    background: BackgroundStats | None = None
    candidates: list[Candidate] | None = None

    output: DetectionResult | None = None

    warnings: list[str] = []
    errors: list[ProcessingError] = []
