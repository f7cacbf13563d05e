"""Tests for vector and bounds utilities."""

import numpy as np

from bsp2obj.vector import BoundingBox, Vector3


class TestVector3:
    """Tests for Vector3 class."""

    def test_creation(self):
        v = Vector3(1.0, 2.0, 3.0)
        assert v.x == 1.0
        assert v.y == 2.0
        assert v.z == 3.0

    def test_zero(self):
        assert Vector3.zero() == Vector3(0.0, 0.0, 0.0)

    def test_equality_is_exact(self):
        assert Vector3(1.0, 2.0, 3.0) != Vector3(1.0, 2.0, 3.0000001)

    def test_parse(self):
        assert Vector3.parse("1 -2.5 3") == Vector3(1.0, -2.5, 3.0)
        assert Vector3.parse("  4   5 6 ") == Vector3(4.0, 5.0, 6.0)

    def test_parse_malformed(self):
        assert Vector3.parse("") is None
        assert Vector3.parse("1 2") is None
        assert Vector3.parse("1 2 3 4") is None
        assert Vector3.parse("1 two 3") is None

    def test_to_array_is_float32(self):
        arr = Vector3(1, 2, 3).to_array()
        assert arr.dtype == np.float32
        assert arr.tolist() == [1.0, 2.0, 3.0]

    def test_from_array(self):
        assert Vector3.from_array(np.array([1, 2, 3], dtype=np.float32)) == Vector3(1, 2, 3)


class TestBoundingBox:
    """Tests for BoundingBox class."""

    def test_from_array(self):
        points = np.array([[0, 0, 0], [10, 10, 10], [5, -5, 5]], dtype=np.float32)
        bbox = BoundingBox.from_array(points)
        assert bbox.mins == Vector3(0, -5, 0)
        assert bbox.maxs == Vector3(10, 10, 10)

    def test_from_empty_array(self):
        assert BoundingBox.from_array(np.zeros((0, 3), dtype=np.float32)) is None
