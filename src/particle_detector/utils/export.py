"""JSON / CSV serialization of detection results."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from particle_detector import config
from particle_detector.models import Candidate, DetectionResult


def candidate_rows(candidates: list[Candidate]) -> list[dict[str, object]]:
    return [{field: getattr(c, field) for field in config.CSV_FIELDS} for c in candidates]


def write_candidates_csv(candidates: list[Candidate], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(config.CSV_FIELDS))
        writer.writeheader()
        writer.writerows(candidate_rows(candidates))
    return path


def write_result_json(result: DetectionResult, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.model_dump(mode="json"), indent=2))
    return path
