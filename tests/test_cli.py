import asyncio
import csv
import json

import cv2
import numpy as np
from click.testing import CliRunner

from particle_detector import config
from particle_detector.cli import ImageOutcome, detect_images, main
from particle_detector.models import DetectionConfig

from .conftest import two_spot_field


def _write_field(path) -> str:
    field, _ = two_spot_field()
    cv2.imwrite(str(path), np.clip(field * 6000.0, 0, 65535).astype(np.uint16))
    return str(path)


def test_single_image_writes_json_csv_and_debug(tmp_path):
    image = _write_field(tmp_path / "spots.png")
    out = tmp_path / "out" / "spots.json"
    debug_dir = tmp_path / "debug"

    result = CliRunner().invoke(
        main, [image, "-o", str(out), "--csv", "--all-candidates", "--debug-dir", str(debug_dir)]
    )

    assert result.exit_code == 0, result.output
    assert "detected" in result.output

    payload = json.loads(out.read_text())
    assert set(payload) >= {"all_candidates", "accepted", "threshold", "background", "warnings"}

    with out.with_suffix(".csv").open(newline="") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == len(payload["all_candidates"])
    assert list(rows[0]) == list(config.CSV_FIELDS)

    assert (debug_dir / "spots_detections.png").exists()
    assert (debug_dir / "spots_response_curve.png").exists()


def test_batch_mode_writes_one_json_per_image(tmp_path):
    images = [_write_field(tmp_path / f"img{i}.png") for i in range(3)]
    out_dir = tmp_path / "results"

    result = CliRunner().invoke(main, [*images, "--output-dir", str(out_dir), "--max-concurrency", "2"])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out_dir.glob("*.json")) == ["img0.json", "img1.json", "img2.json"]
    assert "3 success, 0 failed" in result.output


def test_flat_image_reports_zero_particles(tmp_path):
    image = tmp_path / "flat.png"
    cv2.imwrite(str(image), np.full((16, 16), 100, dtype=np.uint8))

    result = CliRunner().invoke(main, [str(image), "-o", str(tmp_path / "flat.json")])

    assert result.exit_code == 0, result.output
    assert "detected 0 particles" in result.output
    assert not (tmp_path / "flat.json").exists()


def test_invalid_window_size_exits_with_error(tmp_path):
    image = _write_field(tmp_path / "spots.png")
    result = CliRunner().invoke(main, [image, "--window-size", "4"])
    assert result.exit_code == 1
    assert "invalid detection settings" in result.output


def test_output_flag_rejected_in_batch_mode(tmp_path):
    images = [_write_field(tmp_path / f"img{i}.png") for i in range(2)]
    result = CliRunner().invoke(main, [*images, "-o", str(tmp_path / "x.json")])
    assert result.exit_code == 1


def test_unreadable_image_fails(tmp_path):
    bogus = tmp_path / "bogus.png"
    bogus.write_bytes(b"not an image")
    result = CliRunner().invoke(main, [str(bogus), "-o", str(tmp_path / "b.json")])
    assert result.exit_code == 1
    assert "Failed to read image" in result.output


def test_detect_images_yields_one_outcome_per_path(tmp_path):
    good = tmp_path / "good.png"
    _write_field(good)
    missing = tmp_path / "missing.png"

    async def _collect() -> list[ImageOutcome]:
        return [o async for o in detect_images((good, missing), DetectionConfig(), None, 1)]

    outcomes = {o.path: o for o in asyncio.run(_collect())}

    assert set(outcomes) == {good, missing}
    assert outcomes[good].error is None and outcomes[good].state.output is not None
    assert [e.error_type for e in outcomes[missing].state.errors] == ["file_not_found"]
