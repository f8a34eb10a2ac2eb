"""Debug artifact writers: detection overlay and spot-response curve."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray

from particle_detector import config
from particle_detector.models import Candidate, DetectionResult, ProcessingError
from particle_detector.utils import cv_utils
from particle_detector.utils.grid import Grid


def _safe_write(path: Path, image: NDArray[np.uint8]) -> None:
    saved = cv_utils.save_image(image, path)
    if isinstance(saved, ProcessingError):
        raise OSError(saved.message)


def _overlay_scale(height: int, width: int) -> int:
    longest = max(1, height, width)
    return int(np.clip(config.OVERLAY_TARGET_SIZE // longest, 1, config.OVERLAY_UPSCALE_MAX))


def draw_detections(
    grid: Grid,
    candidates: list[Candidate],
    accepted: list[Candidate],
) -> NDArray[np.uint8]:
    """Upscaled grayscale view with rejected candidates in grey and detections in red."""
    base = cv_utils.to_display_u8(grid.values)
    scale = _overlay_scale(grid.height, grid.width)
    if scale > 1:
        base = cv2.resize(
            base, (grid.width * scale, grid.height * scale), interpolation=cv2.INTER_NEAREST
        )
    out = cv_utils.ensure_bgr(base)

    def _centre(c: Candidate) -> tuple[int, int]:
        return (int(c.x * scale + scale // 2), int(c.y * scale + scale // 2))

    radius = config.OVERLAY_MARKER_RADIUS * scale
    accepted_xy = {(c.x, c.y) for c in accepted}
    for c in candidates:
        if (c.x, c.y) in accepted_xy:
            continue
        cv2.drawMarker(
            out,  # type: ignore[arg-type]
            _centre(c),
            color=(140, 140, 140),
            markerType=cv2.MARKER_CROSS,
            markerSize=max(3, scale * 2),
            thickness=1,
            line_type=cv2.LINE_AA,
        )
    for c in accepted:
        cv2.circle(out, _centre(c), radius, (0, 0, 255), 1, cv2.LINE_AA)
    return out


def _write_response_curve(result: DetectionResult, path: Path) -> None:
    """Sorted candidate scores against cumulative count, with the cutoff line."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    scores = np.sort(np.asarray([c.score for c in result.all_candidates], dtype=np.float64))
    fig, ax = plt.subplots(figsize=(6.67, 5.33))
    try:
        ax.plot(scores, np.arange(1, scores.size + 1), color="#8b0000", linewidth=2)
        ax.axvline(result.threshold, linestyle="--", color="blue", linewidth=2)
        ax.set_title("Spot Classification Response")
        ax.set_xlabel("Spot response value (local mean x DoH)")
        ax.set_ylabel("Cumulative count of local maxima")
        ax.legend(
            [f"{len(result.all_candidates)} maxima", f"Threshold = {result.threshold:.4g}"],
            loc="lower right",
            frameon=False,
        )
        ax.grid(alpha=0.3)
        for side in ("top", "right"):
            ax.spines[side].set_visible(False)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=config.RESPONSE_PLOT_DPI, bbox_inches="tight")
    finally:
        plt.close(fig)


def write_debug_artifacts(
    grid: Grid,
    result: DetectionResult,
    out_dir: Path,
    prefix: str,
) -> list[str]:
    """Persist the detection overlay and response curve for inspection."""
    warnings: list[str] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        overlay = draw_detections(grid, result.all_candidates, result.accepted)
        _safe_write(out_dir / f"{prefix}_detections.png", overlay)
        _write_response_curve(result, out_dir / f"{prefix}_response_curve.png")
    except Exception as exc:
        warnings.append(f"W_DEBUG_ARTIFACT_WRITE_FAILED:{exc}")
    return warnings
