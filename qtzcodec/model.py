"""
In-memory mesh primitive whose geometry arrays are compressed.
"""

from dataclasses import dataclass
from typing import Optional, Self

import torch

from .array.topology import StripTopology


@dataclass
class Mesh:
    """
    Geometry arrays of one mesh primitive.

    Attributes:
        vertices: Positions, shape (N, 3).
        normals: Optional unit normals, shape (N, 3).
        uvs: Optional texture coordinates, shape (N, 2).
        topology: Optional triangle strips over the N elements, as a
            StripTopology or a list of index lists.
    """
    vertices: torch.Tensor
    normals: Optional[torch.Tensor] = None
    uvs: Optional[torch.Tensor] = None
    topology: Optional[StripTopology] = None

    def __post_init__(self):
        self.topology = StripTopology.coerce(self.topology)
        for name, arity in (("vertices", 3), ("normals", 3), ("uvs", 2)):
            value = getattr(self, name)
            if value is None:
                continue
            value = torch.as_tensor(value)
            if value.ndim != 2 or value.shape[1] != arity:
                raise ValueError(f"{name} must have shape (N, {arity}), got {tuple(value.shape)}")
            if value.shape[0] != len(self.vertices):
                raise ValueError(
                    f"{name} has {value.shape[0]} elements but vertices have {len(self.vertices)}"
                )
            setattr(self, name, value)

    def __len__(self) -> int:
        return self.vertices.shape[0]

    def to(self, device) -> Self:
        """Return a copy of the mesh with its arrays on ``device``."""
        return Mesh(
            vertices=self.vertices.to(device),
            normals=self.normals.to(device) if self.normals is not None else None,
            uvs=self.uvs.to(device) if self.uvs is not None else None,
            topology=self.topology,
        )
