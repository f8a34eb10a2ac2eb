"""Utility modules for particle-detector.

``cv_utils`` (image I/O) and ``filters`` are imported explicitly by callers;
only the Grid type is re-exported here because the models depend on it.
"""

from particle_detector.utils.grid import FloatArray, Grid, as_grid

__all__ = [
    "FloatArray",
    "Grid",
    "as_grid",
]
