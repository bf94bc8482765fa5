"""
Combination modules composing the mesh codec with a serialization format.
"""

from .registry import (
    ENCODERS,
    DECODERS,
    register_encoder,
    register_decoder,
    CodecEntry,
    describe,
)

# Import to trigger registration
from . import qtz

from .qtz import (
    QTZEncoderConfig,
    QTZDecoderConfig,
    QTZZstdEncoderConfig,
    QTZZstdDecoderConfig,
    build_qtz_encoder,
    build_qtz_decoder,
    build_qtzzstd_encoder,
    build_qtzzstd_decoder,
)

__all__ = [
    "ENCODERS",
    "DECODERS",
    "register_encoder",
    "register_decoder",
    "CodecEntry",
    "describe",
    # framed
    "QTZEncoderConfig",
    "QTZDecoderConfig",
    "build_qtz_encoder",
    "build_qtz_decoder",
    # framed + Zstd
    "QTZZstdEncoderConfig",
    "QTZZstdDecoderConfig",
    "build_qtzzstd_encoder",
    "build_qtzzstd_decoder",
]
