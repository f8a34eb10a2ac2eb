from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ProcessingStage(str, Enum):
    INPUT = "input"
    PREPROCESS = "preprocess"
    DETECT = "detect"
    CLASSIFY = "classify"


class ProcessingError(BaseModel):
    stage: ProcessingStage
    error_type: str
    recoverable: bool
    message: str
    details: dict[str, Any] = {}


class LocalMaximum(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    intensity: float


class BackgroundStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float
    sd: float
    n_pixels: int


class Candidate(BaseModel):
    """One local maximum with its blob-strength features."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    intensity: float
    hessian_response: float
    local_mean_intensity: float
    score: float  # local_mean_intensity * hessian_response
    significance: float
    is_significant: bool  # diagnostic only, never used for acceptance


class DetectionResult(BaseModel):
    all_candidates: list[Candidate]
    accepted: list[Candidate]
    threshold: float
    background: BackgroundStats
    warnings: list[str] = []

    @property
    def n_accepted(self) -> int:
        return len(self.accepted)
