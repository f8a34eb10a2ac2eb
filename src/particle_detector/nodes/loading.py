"""Input node: load an image file into a Grid unless one was supplied."""

from particle_detector.models import DetectionState, ProcessingError, ProcessingStage
from particle_detector.utils import cv_utils


def load(state: DetectionState) -> DetectionState:
    if state.grid is not None:
        return state

    if state.image_path is None:
        err = ProcessingError(
            stage=ProcessingStage.INPUT,
            error_type="missing_input",
            recoverable=False,
            message="Either a grid or an image path is required",
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    grid = cv_utils.load_grid(state.image_path, roi=state.roi)
    if isinstance(grid, ProcessingError):
        return state.model_copy(update={"errors": state.errors + [grid]})
    return state.model_copy(update={"grid": grid})
