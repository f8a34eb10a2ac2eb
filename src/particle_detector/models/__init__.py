from .detection import (
    BackgroundStats,
    Candidate,
    DetectionResult,
    LocalMaximum,
    ProcessingError,
    ProcessingStage,
)
from .state import DetectionConfig, DetectionState, RegionOfInterest

__all__ = [
    "BackgroundStats",
    "Candidate",
    "DetectionConfig",
    "DetectionResult",
    "DetectionState",
    "LocalMaximum",
    "ProcessingError",
    "ProcessingStage",
    "RegionOfInterest",
]
