"""
Mesh-level compression: one payload per mesh, framed into a byte stream.
"""

from .interface import (
    ArrayCodecConfig,
    MeshCodecConfig,
    MeshPayload,
    MeshCodecInterface,
)
from .serialize import MeshSerializer, MeshDeserializer, pack_topology, unpack_topology
from .codec import MeshEncoder, MeshDecoder

__all__ = [
    # interface.py
    'ArrayCodecConfig',
    'MeshCodecConfig',
    'MeshPayload',
    'MeshCodecInterface',
    # serialize.py
    'MeshSerializer',
    'MeshDeserializer',
    'pack_topology',
    'unpack_topology',
    # codec.py
    'MeshEncoder',
    'MeshDecoder',
]
