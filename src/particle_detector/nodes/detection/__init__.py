"""Candidate detection node: local maxima, Hessian response and background stats."""

from __future__ import annotations

from particle_detector.models import DetectionState, LocalMaximum, ProcessingError, ProcessingStage

from .local_maxima import local_maxima, local_maxima_mask
from .scoring import background_statistics, summarize_local_maxima


def detect(state: DetectionState) -> DetectionState:
    """
    Score every local maximum of the enhanced grid.

    Updates state with:
    - maxima: coordinates and intensities of all local maxima
    - candidates: per-maximum feature records
    - background: statistics of the non-maximum pixels
    - errors: empty_candidate_set / insufficient_background / invalid_kernel
    """
    if state.enhanced is None:
        err = ProcessingError(
            stage=ProcessingStage.DETECT,
            error_type="missing_input",
            recoverable=False,
            message="Detection requires an enhanced grid",
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    cfg = state.config
    summary = summarize_local_maxima(state.enhanced, cfg.window_size, cfg.thresh_coef)
    if isinstance(summary, ProcessingError):
        return state.model_copy(update={"errors": state.errors + [summary]})

    candidates, background = summary
    maxima = [LocalMaximum(x=c.x, y=c.y, intensity=c.intensity) for c in candidates]

    warnings = list(state.warnings)
    warnings.append(f"I_CANDIDATES:{len(candidates)}")
    n_sig = sum(1 for c in candidates if c.is_significant)
    warnings.append(f"I_SIGNIFICANT_FLAGS:{n_sig}")

    return state.model_copy(
        update={
            "maxima": maxima,
            "candidates": candidates,
            "background": background,
            "warnings": warnings,
        }
    )


__all__ = [
    "background_statistics",
    "detect",
    "local_maxima",
    "local_maxima_mask",
    "summarize_local_maxima",
]
