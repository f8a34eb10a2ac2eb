from __future__ import annotations

import numpy as np
import pytest

from particle_detector.models import Candidate
from particle_detector.utils.grid import Grid


def make_candidate(score: float, x: int = 0, y: int = 0) -> Candidate:
    return Candidate(
        x=x,
        y=y,
        intensity=1.0,
        hessian_response=score,
        local_mean_intensity=1.0,
        score=score,
        significance=0.0,
        is_significant=True,
    )


def two_spot_field(size: int = 60) -> tuple[np.ndarray, list[tuple[int, int]]]:
    """Periodic low-noise background (period 10) with two equal 10.0 spots.

    The spots are offset by a multiple of the period, so their neighbourhoods
    are identical.
    """
    tile = np.random.default_rng(7).uniform(0.0, 0.05, (10, 10))
    field = np.tile(tile, (size // 10, size // 10))
    spots = [(15, 15), (45, 35)]
    for x, y in spots:
        field[y, x] = 10.0
    return field, spots


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def single_spot_5x5() -> Grid:
    values = np.zeros((5, 5))
    values[2, 2] = 10.0
    return Grid(values)
