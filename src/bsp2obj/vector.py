"""
Vector and bounds utilities for the BSP to OBJ converter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Vector3:
    """3D vector for entity origins and model bounds.

    Equality is exact component equality; no tolerance is applied.
    """
    x: float
    y: float
    z: float

    def __repr__(self) -> str:
        return f"Vector3({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"

    @classmethod
    def zero(cls) -> Vector3:
        """Return zero vector."""
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vector3:
        """Create vector from numpy array."""
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    @classmethod
    def parse(cls, text: str) -> Optional[Vector3]:
        """
        Parse a space-separated "x y z" entity value.

        Returns None if the text does not hold exactly three numbers.
        """
        parts = text.split()
        if len(parts) != 3:
            return None
        try:
            return cls(float(parts[0]), float(parts[1]), float(parts[2]))
        except ValueError:
            return None

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to tuple."""
        return (self.x, self.y, self.z)

    def to_array(self) -> np.ndarray:
        """Convert to float32 numpy array, the precision BSP data is stored in."""
        return np.array([self.x, self.y, self.z], dtype=np.float32)


@dataclass
class BoundingBox:
    """Axis-aligned bounding box."""
    mins: Vector3
    maxs: Vector3

    @classmethod
    def from_array(cls, points: np.ndarray) -> Optional[BoundingBox]:
        """Create bounding box from an (N, 3) array of points."""
        if len(points) == 0:
            return None
        return cls(
            Vector3.from_array(points.min(axis=0)),
            Vector3.from_array(points.max(axis=0)),
        )
