"""
Immutable 2-D sample grid shared by every pipeline stage.

Samples are float64, indexed ``values[y, x]`` with 0-based coordinates
(``x`` is the column, ``y`` the row). Every operation returns a new Grid; the
wrapped array is flagged read-only so stages cannot mutate their inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

FloatArray: TypeAlias = NDArray[np.float64]


@dataclass(frozen=True, eq=False)
class Grid:
    values: FloatArray

    def __post_init__(self) -> None:
        arr = np.array(self.values, dtype=np.float64, copy=True)
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    @property
    def is_empty(self) -> bool:
        return self.values.ndim != 2 or self.values.size == 0

    def at(self, x: int, y: int) -> float:
        return float(self.values[y, x])

    def finite_mask(self) -> NDArray[np.bool_]:
        return np.isfinite(self.values)

    def to_array(self) -> FloatArray:
        """Writable copy of the samples."""
        return self.values.copy()

    # -- algebra ------------------------------------------------------------

    def _operand(self, other: Any) -> FloatArray | float:
        if isinstance(other, Grid):
            if other.shape != self.shape:
                raise ValueError(f"grid shapes differ: {self.shape} vs {other.shape}")
            return other.values
        return float(other)

    def __add__(self, other: Grid | float) -> Grid:
        return Grid(self.values + self._operand(other))

    def __radd__(self, other: float) -> Grid:
        return self.__add__(other)

    def __sub__(self, other: Grid | float) -> Grid:
        return Grid(self.values - self._operand(other))

    def __truediv__(self, other: Grid | float) -> Grid:
        return Grid(self.values / self._operand(other))

    def __mul__(self, other: Grid | float) -> Grid:
        return Grid(self.values * self._operand(other))

    def __repr__(self) -> str:
        return f"Grid(shape={tuple(self.values.shape)})"


def as_grid(data: Grid | ArrayLike) -> Grid:
    if isinstance(data, Grid):
        return data
    return Grid(np.asarray(data, dtype=np.float64))
