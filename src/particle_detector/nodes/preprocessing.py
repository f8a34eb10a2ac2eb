"""Preprocessing node: standardization and blob-enhancing filter cascade."""

from particle_detector.models import DetectionConfig, DetectionState, ProcessingError, ProcessingStage
from particle_detector.utils import filters
from particle_detector.utils.grid import Grid


def enhance_grid(
    standardized: Grid,
    cfg: DetectionConfig,
) -> Grid | ProcessingError:
    """
    Enhance blob-like structures.

    box blur -> Gaussian-like smoothing -> Laplacian, then the standardized
    grid is added back so particles are boosted on top of the original signal.
    """
    smoothed = filters.box_blur(standardized, cfg.box_size)
    if isinstance(smoothed, ProcessingError):
        return smoothed

    gauss = filters.convolve(smoothed, cfg.smoothing_kernel)
    if isinstance(gauss, ProcessingError):
        return gauss

    laplacian = filters.convolve(gauss, cfg.laplacian_kernel)
    if isinstance(laplacian, ProcessingError):
        return laplacian

    return laplacian + standardized


def preprocess(state: DetectionState) -> DetectionState:
    """
    Standardize the input grid and build the enhanced grid.

    Updates state with:
    - standardized: grid mapped onto [0, 1]
    - enhanced: filtered grid used by detection
    - warnings: W_DEGENERATE_GRID, W_NONFINITE_SAMPLES:<n>
    - errors: Any processing errors encountered
    """
    grid = state.grid
    if grid is None:
        err = ProcessingError(
            stage=ProcessingStage.PREPROCESS,
            error_type="missing_input",
            recoverable=False,
            message="No grid to preprocess",
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    warnings = list(state.warnings)

    standardized = filters.standardize(grid)
    if isinstance(standardized, ProcessingError):
        return state.model_copy(update={"errors": state.errors + [standardized]})

    n_bad = int(grid.values.size - grid.finite_mask().sum())
    if n_bad:
        warnings.append(f"W_NONFINITE_SAMPLES:{n_bad}")
    lo, hi = filters.value_range(grid) or (0.0, 0.0)
    if lo == hi:
        warnings.append("W_DEGENERATE_GRID")

    enhanced = enhance_grid(standardized, state.config)
    if isinstance(enhanced, ProcessingError):
        return state.model_copy(
            update={"errors": state.errors + [enhanced], "warnings": warnings}
        )

    return state.model_copy(
        update={
            "standardized": standardized,
            "enhanced": enhanced,
            "warnings": warnings,
        }
    )
