"""
Array codec + length-prefix framing, with or without zstd compression.

Registers two combinations:
- qtz: framed payloads written as-is
- qtzzstd: framed payloads compressed with zstd
"""

from dataclasses import dataclass, field
from typing import Optional

from omegaconf import DictConfig, OmegaConf

from ..mesh import MeshCodecConfig, MeshDecoder, MeshDeserializer, MeshEncoder, MeshSerializer
from .registry import register_encoder, register_decoder


@dataclass
class QTZEncoderConfig:
    """Configuration for the framed encoder without outer compression."""
    mesh: MeshCodecConfig = field(default_factory=MeshCodecConfig)
    payload_device: Optional[str] = None


@dataclass
class QTZDecoderConfig:
    """Configuration for the framed decoder without outer compression."""
    payload_device: Optional[str] = None
    device: Optional[str] = None


@dataclass
class QTZZstdEncoderConfig(QTZEncoderConfig):
    """Configuration for the framed + zstd encoder."""
    zstd_level: int = 7


@dataclass
class QTZZstdDecoderConfig(QTZDecoderConfig):
    """Configuration for the framed + zstd decoder."""
    pass


def _mesh_config(config) -> MeshCodecConfig:
    """Accept a MeshCodecConfig or the DictConfig hydra resolved from it."""
    if isinstance(config, DictConfig):
        return OmegaConf.to_object(OmegaConf.merge(OmegaConf.structured(MeshCodecConfig), config))
    return config


def build_qtz_encoder(config: QTZEncoderConfig) -> MeshEncoder:
    """Encoder writing the frames without outer compression."""
    return MeshEncoder(
        serializer=MeshSerializer(zstd_level=None),
        config=_mesh_config(config.mesh),
        payload_device=config.payload_device,
    )


def build_qtz_decoder(config: QTZDecoderConfig) -> MeshDecoder:
    """Decoder reading frames written without outer compression."""
    return MeshDecoder(
        deserializer=MeshDeserializer(compressed=False),
        payload_device=config.payload_device,
        device=config.device,
    )


def build_qtzzstd_encoder(config: QTZZstdEncoderConfig) -> MeshEncoder:
    """Encoder zstd-compressing the framed stream."""
    return MeshEncoder(
        serializer=MeshSerializer(zstd_level=config.zstd_level),
        config=_mesh_config(config.mesh),
        payload_device=config.payload_device,
    )


def build_qtzzstd_decoder(config: QTZZstdDecoderConfig) -> MeshDecoder:
    """Decoder for a zstd-compressed framed stream."""
    return MeshDecoder(
        deserializer=MeshDeserializer(compressed=True),
        payload_device=config.payload_device,
        device=config.device,
    )


# Register
register_encoder(
    "qtz",
    build_qtz_encoder,
    QTZEncoderConfig,
    "Array quantization/prediction, framed without outer compression",
)

register_decoder(
    "qtz",
    build_qtz_decoder,
    QTZDecoderConfig,
    "Array quantization/prediction, framed without outer compression",
)

register_encoder(
    "qtzzstd",
    build_qtzzstd_encoder,
    QTZZstdEncoderConfig,
    "Array quantization/prediction + Zstd compression",
)

register_decoder(
    "qtzzstd",
    build_qtzzstd_decoder,
    QTZZstdDecoderConfig,
    "Array quantization/prediction + Zstd decompression",
)
