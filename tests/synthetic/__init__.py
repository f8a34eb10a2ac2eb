"""Synthetic spot-field test harness.

Generate fluorescence-like spot images with known ground truth for pipeline
evaluation.

Usage:
    from tests.synthetic import generate_standard, run_case

    case_dirs = generate_standard(tmp_path)   # clean + degraded cases
    results = run_case(case_dirs[0])
"""

from .data_gen import SyntheticSpot, SyntheticTestCase, generate_test_case
from .ground_truth import MatchSummary, load_test_case, match_detections, save_test_case
from .modifiers import (
    BackgroundGradient,
    DeadPixels,
    GaussianBlur,
    Modifier,
    NoisyBackground,
)
from .presets import clean_case, degraded_case, generate_standard
from .renderer import render_image, render_test_case
from .runner import run_case

__all__ = [
    # Generation
    "generate_test_case",
    "generate_standard",
    "clean_case",
    "degraded_case",
    "render_image",
    "render_test_case",
    # Data types
    "SyntheticSpot",
    "SyntheticTestCase",
    "MatchSummary",
    # Persistence
    "load_test_case",
    "save_test_case",
    # Comparison
    "match_detections",
    # Runner
    "run_case",
    # Modifiers
    "Modifier",
    "BackgroundGradient",
    "DeadPixels",
    "GaussianBlur",
    "NoisyBackground",
]
