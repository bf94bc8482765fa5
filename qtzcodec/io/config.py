"""
Hydra/OmegaConf schemas of the command-line inputs and outputs.
"""

from dataclasses import dataclass

from omegaconf import MISSING


@dataclass
class MeshSequenceConfig:
    """
    A numbered sequence of .npz meshes.

    The first mesh has its own path. Mesh ``k`` after it lives at
    ``subsequent_format.format(start_index + k)``; an empty format means the
    sequence holds a single mesh.
    """
    first_mesh_path: str = MISSING
    subsequent_format: str = ""
    start_index: int = 1


@dataclass
class MeshReaderConfig(MeshSequenceConfig):
    """Meshes to encode."""
    pass


@dataclass
class MeshWriterConfig(MeshSequenceConfig):
    """Where to write decoded meshes."""
    pass


@dataclass
class BytesReaderConfig:
    """Stream file to decode, read ``chunk_size`` bytes at a time."""
    path: str = MISSING
    chunk_size: int = 64 * 1024


@dataclass
class BytesWriterConfig:
    """Stream file to write."""
    path: str = MISSING
