import numpy as np
import pytest

from tests.synthetic import (
    generate_standard,
    generate_test_case,
    load_test_case,
    match_detections,
    render_image,
    run_case,
)


@pytest.fixture(scope="module")
def case_dirs(tmp_path_factory):
    return generate_standard(tmp_path_factory.mktemp("synthetic"))


def test_spots_respect_minimum_separation():
    case = generate_test_case("sep", seed=3, min_separation=12.0)
    xy = np.array([(s.x, s.y) for s in case.spots], dtype=np.float64)
    dists = np.linalg.norm(xy[:, None, :] - xy[None, :, :], axis=-1)
    np.fill_diagonal(dists, np.inf)
    assert len(case.spots) == 8
    assert dists.min() >= 12.0


def test_rendered_image_peaks_at_spot_centres():
    case = generate_test_case("render", seed=5)
    image = render_image(case)
    assert image.shape == (case.height, case.width)
    for spot in case.spots:
        y, x = spot.y, spot.x
        assert image[y, x] == image[y - 1 : y + 2, x - 1 : x + 2].max()


def test_saved_case_round_trips(case_dirs):
    loaded = load_test_case(case_dirs[0])
    assert loaded.name == "clean"
    assert loaded.image_path is not None
    assert len(loaded.spots) == 8


def test_clean_case_spots_are_the_top_scores(case_dirs):
    results = run_case(case_dirs[0])
    assert results["pipeline_errors"] == []
    assert results["top_k_recall"] == 1.0
    assert results["passed"]


def test_degraded_case_still_runs(case_dirs):
    results = run_case(case_dirs[1])
    assert results["pipeline_errors"] == []
    assert results["n_candidates"] > results["n_spots"]
    assert results["top_k_recall"] >= 0.5


def test_matching_is_one_to_one():
    case = generate_test_case("match", seed=2)
    spot = case.spots[0]

    class _Detection:
        def __init__(self, x, y):
            self.x, self.y = x, y

    # two detections on one spot count once
    summary = match_detections([_Detection(spot.x, spot.y), _Detection(spot.x + 1, spot.y)], case.spots)
    assert summary.true_positives == 1
    assert summary.precision == pytest.approx(0.5)
    assert summary.recall == pytest.approx(1 / len(case.spots))
