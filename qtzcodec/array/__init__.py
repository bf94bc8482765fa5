"""
Array-level geometry compression.

This module provides quantization of vertex, normal and texture-coordinate
arrays relative to a bounding extent, with optional parallelogram prediction
along triangle strips and azimuth projection of normals.
"""

from .quant import (
    precision_step,
    quantize,
    unquantize,
    round_half_away,
    code_limits,
)
from .topology import StripTopology
from .predict import parallelogram_prediction, predict_parallelogram, unpredict_parallelogram
from .azimuth import AZIMUTH_EXTENT, project_azimuth, unproject_azimuth
from .codec import ArrayKind, CompressionMode, CompressedArray, ArrayCodec
from .wire import pack_compressed_array, unpack_compressed_array

__all__ = [
    # quant.py
    'precision_step',
    'quantize',
    'unquantize',
    'round_half_away',
    'code_limits',
    # topology.py
    'StripTopology',
    # predict.py
    'parallelogram_prediction',
    'predict_parallelogram',
    'unpredict_parallelogram',
    # azimuth.py
    'AZIMUTH_EXTENT',
    'project_azimuth',
    'unproject_azimuth',
    # codec.py
    'ArrayKind',
    'CompressionMode',
    'CompressedArray',
    'ArrayCodec',
    # wire.py
    'pack_compressed_array',
    'unpack_compressed_array',
]
