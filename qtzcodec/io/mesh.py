"""
Mesh reader and writer classes for sequences of .npz archives.

Archive keys:
    vertices       (N, 3) float
    normals        (N, 3) float, optional
    uvs            (N, 2) float, optional
    strip_indices  (M,) int, optional, flat strip indices
    strip_offsets  (S + 1,) int, optional, strip boundaries
"""

import os
from typing import Iterator, Optional, Self

import numpy as np
import torch

from ..array.topology import StripTopology
from ..model import Mesh
from .config import MeshSequenceConfig


def load_mesh(path: str) -> Mesh:
    """Load a Mesh from a .npz archive."""
    with np.load(path) as archive:
        arrays = {
            name: torch.from_numpy(archive[name])
            for name in ("vertices", "normals", "uvs")
            if name in archive
        }
        topology = None
        if "strip_offsets" in archive:
            topology = StripTopology(
                indices=torch.from_numpy(archive["strip_indices"].astype(np.int64)),
                offsets=torch.from_numpy(archive["strip_offsets"].astype(np.int64)),
            )
    if "vertices" not in arrays:
        raise KeyError(f"No 'vertices' array in {path}")
    return Mesh(topology=topology, **arrays)


def save_mesh(mesh: Mesh, path: str) -> None:
    """Save a Mesh to a .npz archive."""
    arrays = {"vertices": mesh.vertices.detach().cpu().numpy()}
    if mesh.normals is not None:
        arrays["normals"] = mesh.normals.detach().cpu().numpy()
    if mesh.uvs is not None:
        arrays["uvs"] = mesh.uvs.detach().cpu().numpy()
    if mesh.topology is not None:
        arrays["strip_indices"] = mesh.topology.indices.numpy()
        arrays["strip_offsets"] = mesh.topology.offsets.numpy()
    # np.savez appends .npz to bare names; write through a file object instead
    with open(path, "wb") as f:
        np.savez(f, **arrays)


class MeshSequence:
    """
    A numbered sequence of mesh files.

    Example:
        sequence = MeshReader("data/mesh_0000.npz", "data/mesh_{:04d}.npz", start_index=1)
        sequence.path(0)  # "data/mesh_0000.npz"
        sequence.path(2)  # "data/mesh_0002.npz"
    """

    def __init__(self, first_mesh_path: str, subsequent_format: str = "", start_index: int = 1):
        self._first_mesh_path = first_mesh_path
        self._subsequent_format = subsequent_format
        self._start_index = start_index

    @classmethod
    def from_config(cls, config: MeshSequenceConfig) -> Self:
        return cls(
            first_mesh_path=config.first_mesh_path,
            subsequent_format=config.subsequent_format,
            start_index=config.start_index,
        )

    def path(self, position: int) -> Optional[str]:
        """Path of the mesh at ``position`` in the sequence, or None past a single-mesh sequence."""
        if position == 0:
            return self._first_mesh_path
        if not self._subsequent_format:
            return None
        return self._subsequent_format.format(self._start_index + position - 1)


class MeshReader(MeshSequence):
    """Reads a sequence until the next numbered file is missing."""

    def read(self) -> Iterator[Mesh]:
        """
        Yields:
            The meshes of the sequence, in order.

        Raises:
            FileNotFoundError: If the first mesh does not exist.
        """
        if not os.path.exists(self._first_mesh_path):
            raise FileNotFoundError(f"First mesh file not found: {self._first_mesh_path}")

        position = 0
        path = self.path(position)
        while path is not None and os.path.exists(path):
            yield load_mesh(path)
            position += 1
            path = self.path(position)


class MeshWriter(MeshSequence):
    """Writes one file per mesh, never overwriting."""

    def write(self, meshes: Iterator[Mesh]) -> int:
        """
        Write every mesh of ``meshes``.

        Returns:
            The number of meshes written.

        Raises:
            ValueError: If there is more than one mesh and no subsequent format.
            FileExistsError: If a target file already exists.
        """
        count = 0
        for mesh in meshes:
            path = self.path(count)
            if path is None:
                raise ValueError("More than one mesh to write but no subsequent_format given")
            if os.path.exists(path):
                raise FileExistsError(f"File already exists: {path}")
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            save_mesh(mesh, path)
            count += 1
        return count
