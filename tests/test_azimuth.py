import math

import torch

from qtzcodec import AZIMUTH_EXTENT
from qtzcodec.array.azimuth import project_azimuth, unproject_azimuth

from .utils import random_unit_vectors


def test_axes():
    normals = torch.tensor([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [0.0, 0.0, -1.0]])
    angles = project_azimuth(normals)
    expected = torch.tensor([
        [0.0, 0.0],
        [math.pi / 2, 0.0],
        [0.0, math.pi / 2],
        [0.0, -math.pi / 2],
    ], dtype=torch.float64)
    assert torch.allclose(angles, expected, atol=1e-12)


def test_round_trip():
    normals = torch.cat([
        random_unit_vectors(200),
        torch.tensor([[0.0, 0.0, 1.0], [0.0, 0.0, -1.0], [-1.0, 0.0, 0.0], [0.0, -1.0, 0.0]], dtype=torch.float64),
    ])
    restored = unproject_azimuth(project_azimuth(normals))
    assert torch.allclose(restored, normals, atol=1e-12)


def test_projection_lies_in_azimuth_extent():
    angles = project_azimuth(random_unit_vectors(500, seed=1))
    assert ((angles >= AZIMUTH_EXTENT.bbl) & (angles <= AZIMUTH_EXTENT.ufr)).all()


def test_unprojection_is_unit_length():
    generator = torch.Generator().manual_seed(2)
    angles = AZIMUTH_EXTENT.bbl + torch.rand((100, 2), generator=generator, dtype=torch.float64) * AZIMUTH_EXTENT.size
    normals = unproject_azimuth(angles)
    assert torch.allclose(normals.norm(dim=1), torch.ones(100, dtype=torch.float64), atol=1e-12)
