"""Pipeline nodes for particle detection.

This module intentionally uses lazy imports so that importing the models does
not pull in OpenCV.
"""

from __future__ import annotations

from particle_detector.models import DetectionState


def load(state: DetectionState) -> DetectionState:
    from particle_detector.nodes.loading import load as _load

    return _load(state)


def preprocess(state: DetectionState) -> DetectionState:
    from particle_detector.nodes.preprocessing import preprocess as _preprocess

    return _preprocess(state)


def detect(state: DetectionState) -> DetectionState:
    from particle_detector.nodes.detection import detect as _detect

    return _detect(state)


def classify(state: DetectionState) -> DetectionState:
    from particle_detector.nodes.classification import classify as _classify

    return _classify(state)


__all__ = [
    "classify",
    "detect",
    "load",
    "preprocess",
]
