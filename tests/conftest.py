# tests/conftest.py

import pytest
import numpy as np
import laspy

from heightmapper.lidar import PointCloud

@pytest.fixture
def scenario_cloud():
    """
    A single unexcluded sample at world (0, 0, 0) with raw intensity 512,
    inside a 1000 x 1000 bounding box.
    """
    return PointCloud.from_arrays(
        x=[0.0],
        y=[0.0],
        z=[0.0],
        classification=[2],
        intensity=[512],
        bounds=(0.0, 1000.0, 0.0, 1000.0, 0.0, 0.0)
    )

@pytest.fixture
def random_cloud():
    """Reproducible random cloud with a mix of classes over a 100 x 100 area."""
    rng = np.random.default_rng(42)
    n = 2000
    return PointCloud.from_arrays(
        x=rng.uniform(0, 100, n),
        y=rng.uniform(0, 100, n),
        z=rng.uniform(-20, 40, n),
        classification=rng.integers(1, 7, n),
        intensity=rng.integers(0, 65536, n),
        bounds=(0.0, 100.0, 0.0, 100.0, -20.0, 40.0)
    )

@pytest.fixture
def las_factory(tmp_path):
    """
    Factory fixture: writes a LAS 1.2 file (point format 3) with the given
    per-point attributes and returns its path.
    """
    def _create(filename="points.las", x=(), y=(), z=(), classification=None, intensity=None):
        n = len(x)
        header = laspy.LasHeader(point_format=3, version="1.2")
        header.offsets = np.array([0.0, 0.0, 0.0])
        header.scales = np.array([0.01, 0.01, 0.01])

        las = laspy.LasData(header)
        las.x = np.asarray(x, dtype=np.float64)
        las.y = np.asarray(y, dtype=np.float64)
        las.z = np.asarray(z, dtype=np.float64)
        las.classification = np.asarray(
            classification if classification is not None else [2] * n, dtype=np.uint8
        )
        las.intensity = np.asarray(
            intensity if intensity is not None else [0] * n, dtype=np.uint16
        )

        path = tmp_path / filename
        las.write(str(path))
        return path

    return _create

@pytest.fixture
def terrain_las(las_factory):
    """
    A small LAS tile over (0, 8) x (0, 8): a 1-unit lattice of ground points whose
    elevation rises with x, plus one vegetation point (class 5) that must be filtered out.
    """
    xs, ys = np.meshgrid(np.arange(0.5, 8.0, 1.0), np.arange(0.5, 8.0, 1.0))
    xs = xs.ravel()
    ys = ys.ravel()
    zs = xs + 10.0
    classes = [2] * len(xs)
    intensities = [100 * 256] * len(xs)

    # vegetation hit right above a ground point
    xs = np.append(xs, 4.5)
    ys = np.append(ys, 4.5)
    zs = np.append(zs, 60.0)
    classes.append(5)
    intensities.append(250 * 256)

    # corners so the header bounds are exactly (0, 8) x (0, 8)
    xs = np.append(xs, [0.0, 8.0])
    ys = np.append(ys, [0.0, 8.0])
    zs = np.append(zs, [10.0, 18.0])
    classes.extend([2, 2])
    intensities.extend([100 * 256, 100 * 256])

    return las_factory(
        "terrain.las",
        x=xs, y=ys, z=zs,
        classification=classes,
        intensity=intensities
    )
