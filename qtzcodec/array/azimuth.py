"""
Azimuth/elevation reparametrization of unit normals.

A unit normal has two degrees of freedom; storing it as two angles instead of
three correlated components leaves more bits per stored scalar.
"""

import math

import torch

from ..extent import BoundingExtent

# covers every direction: azimuth in [-pi, pi], elevation in [-pi/2, pi/2]
AZIMUTH_EXTENT = BoundingExtent.of((-math.pi, -math.pi / 2), (math.pi, math.pi / 2))


def project_azimuth(normals: torch.Tensor) -> torch.Tensor:
    """
    Project unit normals to (azimuth, elevation) pairs.

    Applies the formula:
        azimuth = atan2(y, x)
        elevation = atan2(z, hypot(x, y))

    The input is assumed to be unit length and is not renormalized.

    Args:
        normals: Unit normals, shape (N, 3).

    Returns:
        Angles, shape (N, 2), dtype float64.
    """
    normals = torch.as_tensor(normals, dtype=torch.float64)
    x, y, z = normals.unbind(dim=-1)
    azimuth = torch.atan2(y, x)
    elevation = torch.atan2(z, torch.hypot(x, y))
    return torch.stack([azimuth, elevation], dim=-1)


def unproject_azimuth(angles: torch.Tensor) -> torch.Tensor:
    """
    Map (azimuth, elevation) pairs back to unit normals.

    Applies the formula:
        n = (cos(e) * cos(a), cos(e) * sin(a), sin(e))

    Args:
        angles: Angles, shape (N, 2).

    Returns:
        Unit normals, shape (N, 3), dtype float64.
    """
    angles = torch.as_tensor(angles, dtype=torch.float64)
    azimuth, elevation = angles.unbind(dim=-1)
    cos_elevation = torch.cos(elevation)
    return torch.stack([
        cos_elevation * torch.cos(azimuth),
        cos_elevation * torch.sin(azimuth),
        torch.sin(elevation),
    ], dim=-1)
