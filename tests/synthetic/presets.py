"""Preset synthetic cases."""

from __future__ import annotations

from pathlib import Path

from .data_gen import SyntheticTestCase, generate_test_case
from .ground_truth import save_test_case
from .modifiers import BackgroundGradient, DeadPixels, GaussianBlur, NoisyBackground
from .renderer import render_test_case


def _generate_and_save(case: SyntheticTestCase, output_dir: Path) -> Path:
    case_dir = Path(output_dir) / case.name
    render_test_case(case, case_dir)
    save_test_case(case, case_dir)
    return case_dir


def clean_case(seed: int = 0) -> SyntheticTestCase:
    return generate_test_case(
        "clean", seed, modifiers=[NoisyBackground(sigma=0.01)]
    )


def degraded_case(seed: int = 1) -> SyntheticTestCase:
    return generate_test_case(
        "degraded",
        seed,
        amplitude=0.6,
        modifiers=[
            GaussianBlur(sigma=0.6),
            BackgroundGradient(strength=0.15),
            NoisyBackground(sigma=0.02),
            DeadPixels(count=10),
        ],
    )


def generate_standard(output_dir: str | Path) -> list[Path]:
    """Render the preset cases into ``output_dir``; returns case directories."""
    return [_generate_and_save(case, Path(output_dir)) for case in (clean_case(), degraded_case())]
