"""Percentile-threshold classification of scored candidates."""

from __future__ import annotations

import numpy as np

from particle_detector.models import (
    Candidate,
    DetectionResult,
    DetectionState,
    ProcessingError,
    ProcessingStage,
)


def percentile_cutoff(
    scores: list[float],
    percentile: float,
    stage: ProcessingStage = ProcessingStage.CLASSIFY,
) -> float | ProcessingError:
    """
    Quantile of ``scores`` at ``percentile`` (a fraction in [0, 1]).

    Linear interpolation between order statistics: with sorted finite scores
    s[0..n-1], h = (n - 1) * percentile and the cutoff is
    s[floor(h)] + (h - floor(h)) * (s[floor(h) + 1] - s[floor(h)]).
    Non-finite scores are ignored.
    """
    arr = np.asarray(scores, dtype=np.float64)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return ProcessingError(
            stage=stage,
            error_type="empty_candidate_set",
            recoverable=True,
            message="No finite candidate scores; percentile is undefined",
            details={"n_scores": len(scores)},
        )
    return float(np.percentile(arr, percentile * 100.0, method="linear"))


def classify_candidates(
    candidates: list[Candidate],
    percentile: float,
    stage: ProcessingStage = ProcessingStage.CLASSIFY,
) -> tuple[list[Candidate], float] | ProcessingError:
    """
    Keep candidates whose score is strictly above the percentile cutoff.

    Ties with the cutoff are rejected, so equal scores always share a fate.

    Returns:
        (accepted candidates in input order, cutoff) or ProcessingError
    """
    if not candidates:
        return ProcessingError(
            stage=stage,
            error_type="empty_candidate_set",
            recoverable=True,
            message="No candidates to classify",
        )
    cutoff = percentile_cutoff([c.score for c in candidates], percentile, stage)
    if isinstance(cutoff, ProcessingError):
        return cutoff
    accepted = [c for c in candidates if c.score > cutoff]
    return accepted, cutoff


def classify(state: DetectionState) -> DetectionState:
    """Apply the percentile threshold and assemble the DetectionResult."""
    if state.candidates is None or state.background is None:
        err = ProcessingError(
            stage=ProcessingStage.CLASSIFY,
            error_type="missing_input",
            recoverable=False,
            message="Classification requires scored candidates",
        )
        return state.model_copy(update={"errors": state.errors + [err]})

    result = classify_candidates(state.candidates, state.config.percentile)
    if isinstance(result, ProcessingError):
        return state.model_copy(update={"errors": state.errors + [result]})

    accepted, cutoff = result
    warnings = list(state.warnings)
    warnings.append(f"I_THRESHOLD:{cutoff:.6g}")
    warnings.append(f"I_ACCEPTED:{len(accepted)}")
    if not accepted:
        warnings.append("W_NO_ACCEPTED_CANDIDATES")

    output = DetectionResult(
        all_candidates=state.candidates,
        accepted=accepted,
        threshold=cutoff,
        background=state.background,
        warnings=warnings,
    )
    return state.model_copy(update={"output": output, "warnings": warnings})
