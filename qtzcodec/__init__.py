from .errors import CodecError, InvalidWidth, ModeRequiresTopology, InvalidTopology, SizeMismatch
from .extent import BoundingExtent, compute_extent
from .array import (
    ArrayKind,
    CompressionMode,
    CompressedArray,
    ArrayCodec,
    StripTopology,
    AZIMUTH_EXTENT,
    pack_compressed_array,
    unpack_compressed_array,
)
from .model import Mesh
from .payload import Payload, AbstractSerializer, AbstractDeserializer
from .pipeline import AbstractEncoder, AbstractDecoder

__all__ = [
    "CodecError",
    "InvalidWidth",
    "ModeRequiresTopology",
    "InvalidTopology",
    "SizeMismatch",
    "BoundingExtent",
    "compute_extent",
    "ArrayKind",
    "CompressionMode",
    "CompressedArray",
    "ArrayCodec",
    "StripTopology",
    "AZIMUTH_EXTENT",
    "pack_compressed_array",
    "unpack_compressed_array",
    "Mesh",
    "Payload",
    "AbstractEncoder",
    "AbstractDecoder",
    "AbstractSerializer",
    "AbstractDeserializer",
]
