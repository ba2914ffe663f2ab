# tests/unit/test_transform.py

import dataclasses

import numpy as np
import pytest

from heightmapper import ConfigurationError
from heightmapper.lidar import GridTransform

def test_from_bounds_flips_y_axis():
    t = GridTransform.from_bounds(0.0, 1000.0, 0.0, 1000.0, width=2, height=2)

    assert t.offset_x == 0.0
    assert t.offset_y == 1000.0
    assert t.offset_z == 0.0
    assert t.scale_x == pytest.approx(0.002)
    assert t.scale_y == pytest.approx(-0.002)

def test_apply_maps_bounding_box_corners_to_grid_corners():
    t = GridTransform.from_bounds(500.0, 900.0, 100.0, 300.0, width=40, height=20, z_datum=-16.0)

    tx, ty, tz = t.apply(np.array([500.0, 900.0]), np.array([300.0, 100.0]), np.array([0.0, 4.0]))

    np.testing.assert_allclose(tx, [0.0, 40.0])
    np.testing.assert_allclose(ty, [0.0, 20.0])
    np.testing.assert_allclose(tz, [16.0, 20.0])

def test_fixed_extent_overrides_bounds_span():
    t = GridTransform.from_bounds(0.0, 10.0, 0.0, 10.0, width=2048, height=2048, extent=1000.0)

    assert t.scale_x == pytest.approx(2.048)
    assert t.scale_y == pytest.approx(-2.048)

@pytest.mark.parametrize("bounds", [
    (0.0, 0.0, 0.0, 10.0),
    (0.0, 10.0, 5.0, 5.0),
    (10.0, 0.0, 0.0, 10.0),
])
def test_degenerate_bounds_rejected(bounds):
    with pytest.raises(ConfigurationError):
        GridTransform.from_bounds(*bounds, width=10, height=10)

def test_degenerate_bounds_accepted_with_extent():
    t = GridTransform.from_bounds(5.0, 5.0, 5.0, 5.0, width=10, height=10, extent=100.0)
    assert t.scale_x == pytest.approx(0.1)

@pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 10)])
def test_non_positive_dimensions_rejected(width, height):
    with pytest.raises(ConfigurationError):
        GridTransform.from_bounds(0.0, 10.0, 0.0, 10.0, width=width, height=height)

def test_scale_signs_enforced():
    with pytest.raises(ConfigurationError):
        GridTransform(offset_x=0.0, offset_y=0.0, offset_z=0.0, scale_x=1.0, scale_y=1.0)

def test_transform_is_immutable():
    t = GridTransform.from_bounds(0.0, 10.0, 0.0, 10.0, width=10, height=10)
    with pytest.raises(dataclasses.FrozenInstanceError):
        t.scale_x = 2.0

def test_to_affine_inverts_apply():
    t = GridTransform.from_bounds(500.0, 900.0, 100.0, 300.0, width=40, height=20)
    affine = t.to_affine()

    assert affine * (0, 0) == pytest.approx((500.0, 300.0))
    assert affine * (40, 20) == pytest.approx((900.0, 100.0))
    assert affine.e < 0
