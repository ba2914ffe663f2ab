# tests/unit/test_encode.py

import numpy as np
import pytest

from heightmapper.lidar import Heightmap
from heightmapper.raster import quantize_elevation, encode_rgb, decode_rgb

def _heightmap(elevation, intensity):
    elevation = np.asarray(elevation, dtype=np.float64)
    return Heightmap(
        elevation=elevation,
        intensity=np.asarray(intensity, dtype=np.uint8),
        classification=np.zeros(elevation.shape, dtype=np.int64),
        valid=np.ones(elevation.shape, dtype=bool)
    )

def test_quantize_clamps_negative_and_saturates():
    iz = quantize_elevation(np.array([-3.0, 0.0, 0.004, 1.5, 255.99, 300.0]))

    assert iz.dtype == np.uint16
    assert iz.tolist() == [0, 0, 1, 384, 65533, 65535]

def test_encode_splits_elevation_over_two_channels():
    hm = _heightmap([[1.5, -2.0]], [[7, 255]])

    rgb = encode_rgb(hm)

    assert rgb.shape == (3, 1, 2)
    assert rgb.dtype == np.uint8
    # 1.5 * 256 = 384 = 0x0180
    assert rgb[:, 0, 0].tolist() == [7, 0x01, 0x80]
    assert rgb[:, 0, 1].tolist() == [255, 0, 0]

def test_decode_recovers_quantized_values():
    hm = _heightmap([[0.0, 12.25], [100.5, 3.0]], [[0, 1], [2, 3]])

    elevation, intensity = decode_rgb(encode_rgb(hm))

    np.testing.assert_array_equal(elevation, [[0.0, 12.25], [100.5, 3.0]])
    np.testing.assert_array_equal(intensity, [[0, 1], [2, 3]])

def test_decode_rejects_wrong_shape():
    with pytest.raises(ValueError):
        decode_rgb(np.zeros((2, 4, 4), dtype=np.uint8))
