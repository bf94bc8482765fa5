"""
Reading and writing of mesh sequences and compressed streams.
"""

from .mesh import MeshSequence, MeshReader, MeshWriter, load_mesh, save_mesh
from .bytes import BytesReader, BytesWriter
from .config import (
    MeshSequenceConfig,
    MeshReaderConfig,
    MeshWriterConfig,
    BytesReaderConfig,
    BytesWriterConfig,
)

__all__ = [
    "MeshSequence",
    "MeshReader",
    "MeshWriter",
    "load_mesh",
    "save_mesh",
    "BytesReader",
    "BytesWriter",
    "MeshSequenceConfig",
    "MeshReaderConfig",
    "MeshWriterConfig",
    "BytesReaderConfig",
    "BytesWriterConfig",
]
