import numpy as np
import pytest

from particle_detector.models import LocalMaximum, ProcessingError
from particle_detector.nodes.detection import local_maxima, local_maxima_mask
from particle_detector.utils.grid import Grid


def _coords(result) -> list[tuple[int, int]]:
    assert not isinstance(result, ProcessingError), result
    return [(m.x, m.y) for m in result]


def test_single_spot_is_the_only_maximum(single_spot_5x5):
    result = local_maxima(single_spot_5x5, 3)
    assert result == [LocalMaximum(x=2, y=2, intensity=10.0)]


@pytest.mark.parametrize("window", [1, 3, 5, 7])
@pytest.mark.parametrize("x, y", [(0, 0), (4, 2), (6, 7), (9, 9)])
def test_single_peak_found_for_any_window_and_position(window, x, y):
    values = np.zeros((10, 10))
    values[y, x] = 1.0
    assert _coords(local_maxima(Grid(values), window)) == [(x, y)]


def test_gaussian_bump_has_one_maximum():
    yy, xx = np.mgrid[0:21, 0:21]
    bump = np.exp(-((xx - 8) ** 2 + (yy - 12) ** 2) / 8.0)
    assert _coords(local_maxima(Grid(bump), 5)) == [(8, 12)]


def test_flat_grid_has_no_maxima():
    assert local_maxima(Grid(np.full((6, 6), 3.0)), 3) == []


def test_plateau_pixels_are_all_reported_in_row_major_order():
    values = np.zeros((5, 6))
    values[2, 2] = values[2, 3] = values[1, 4] = 5.0
    assert _coords(local_maxima(Grid(values), 3)) == [(4, 1), (2, 2), (3, 2)]


def test_non_finite_samples_are_never_maxima_and_ignored_by_neighbours():
    values = np.zeros((5, 5))
    values[2, 2] = 4.0
    values[2, 3] = np.nan
    values[0, 0] = np.inf
    assert _coords(local_maxima(Grid(values), 3)) == [(2, 2)]


def test_window_of_one_reports_raised_plateaus_only():
    values = np.zeros((5, 5))
    values[1, 1] = 3.0
    values[3, 3] = values[3, 4] = 2.0
    assert _coords(local_maxima(Grid(values), 1)) == [(1, 1), (3, 3), (4, 3)]


@pytest.mark.parametrize("window", [1, 3, 5])
def test_plateau_wider_than_window_is_reported_whole(window):
    values = np.zeros((7, 7))
    values[2:5, 2:5] = 10.0
    expected = [(x, y) for y in range(2, 5) for x in range(2, 5)]
    assert _coords(local_maxima(Grid(values), window)) == expected


def test_plateau_pixels_are_judged_by_their_own_window():
    values = np.zeros((6, 6))
    values[2, 1:4] = 5.0
    values[2, 4] = 6.0
    # (3, 2) sees the 6.0 in a 3x3 window; (1, 2) and (2, 2) do not
    assert _coords(local_maxima(Grid(values), 3)) == [(1, 2), (2, 2), (4, 2)]
    assert _coords(local_maxima(Grid(values), 7)) == [(4, 2)]


@pytest.mark.parametrize("window", [0, 4, -1])
def test_even_or_non_positive_window_is_rejected(window):
    err = local_maxima(Grid(np.zeros((4, 4))), window)
    assert isinstance(err, ProcessingError)
    assert err.error_type == "invalid_kernel"


def test_empty_grid_is_rejected():
    err = local_maxima(Grid(np.zeros((0, 3))), 3)
    assert isinstance(err, ProcessingError)
    assert err.error_type == "dimension_mismatch"


def test_mask_matches_list(rng):
    grid = Grid(rng.uniform(size=(12, 15)))
    mask = local_maxima_mask(grid, 3)
    ys, xs = np.nonzero(mask)
    assert _coords(local_maxima(grid, 3)) == list(zip(xs.tolist(), ys.tolist()))


def test_each_maximum_dominates_its_window(rng):
    values = rng.uniform(size=(16, 16))
    for m in local_maxima(Grid(values), 5):
        window = values[max(0, m.y - 2) : m.y + 3, max(0, m.x - 2) : m.x + 3]
        assert m.intensity == window.max()
