"""
Mesh-level packing of geometry arrays.

Compresses the vertex, normal and texture-coordinate arrays of a Mesh with
one ArrayCodec each, sharing the mesh's strip topology.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Self

import torch

from ..array.azimuth import AZIMUTH_EXTENT
from ..array.codec import ArrayCodec, ArrayKind, CompressedArray, CompressionMode
from ..array.topology import StripTopology
from ..extent import BoundingExtent, compute_extent
from ..model import Mesh
from ..payload import Payload

logger = logging.getLogger(__name__)


@dataclass
class ArrayCodecConfig:
    """
    Compression settings of one array kind.

    Attributes:
        width: Bytes per quantized component, in [1, 4].
        quantization: Quantize elements to fixed-width codes.
        prediction: Predict strip elements with the parallelogram rule.
            Ignored for meshes without strips.
    """
    width: int = 2
    quantization: bool = True
    prediction: bool = True

    @property
    def mode(self) -> CompressionMode:
        mode = CompressionMode.NONE
        if self.quantization:
            mode |= CompressionMode.QUANTIZATION
        if self.prediction:
            mode |= CompressionMode.PREDICTION
        return mode


@dataclass
class MeshCodecConfig:
    """Compression settings of every array kind of a mesh."""
    vertex: ArrayCodecConfig = field(default_factory=lambda: ArrayCodecConfig(width=2))
    normal: ArrayCodecConfig = field(default_factory=lambda: ArrayCodecConfig(width=1, prediction=False))
    uv: ArrayCodecConfig = field(default_factory=lambda: ArrayCodecConfig(width=2))

    def for_kind(self, kind: ArrayKind) -> ArrayCodecConfig:
        return getattr(self, kind.value)


@dataclass
class MeshPayload(Payload):
    """
    Compressed arrays of one mesh, and the strips needed to decode them.

    Attributes:
        vertices: The compressed positions.
        normals: The compressed normals, if the mesh has normals.
        uvs: The compressed texture coordinates, if the mesh has them.
        topology: The mesh's strips, if any.
    """
    vertices: CompressedArray
    normals: Optional[CompressedArray] = None
    uvs: Optional[CompressedArray] = None
    topology: Optional[StripTopology] = None

    def to(self, device) -> Self:
        """
        Move the Payload to the specified device.

        Returns:
            A new MeshPayload with every compressed array on the target device.
        """
        return MeshPayload(
            vertices=self.vertices.to(device),
            normals=self.normals.to(device) if self.normals is not None else None,
            uvs=self.uvs.to(device) if self.uvs is not None else None,
            topology=self.topology,
        )


# attribute of Mesh / MeshPayload holding each kind
ARRAY_FIELDS = {
    ArrayKind.VERTEX: "vertices",
    ArrayKind.NORMAL: "normals",
    ArrayKind.UV: "uvs",
}


def default_extent(kind: ArrayKind, array: torch.Tensor) -> BoundingExtent:
    """
    The extent a mesh array is compressed against.

    Normals use the whole azimuth/elevation domain; other arrays their own
    bounding box (a zero extent for an empty array).
    """
    if kind.projected:
        return AZIMUTH_EXTENT
    if array.shape[0] == 0:
        zero = torch.zeros(kind.stored_arity, dtype=torch.float64)
        return BoundingExtent(bbl=zero, ufr=zero)
    return compute_extent(array)


class MeshCodecInterface:
    """
    Packs meshes into MeshPayloads and back.

    Example:
        interface = MeshCodecInterface(MeshCodecConfig())
        payload = interface.pack_mesh(mesh)
        restored = interface.unpack_mesh(payload)
    """

    def __init__(self, config: Optional[MeshCodecConfig] = None):
        self._config = config if config is not None else MeshCodecConfig()
        self._codecs = {kind: ArrayCodec(kind) for kind in ArrayKind}

    def _mode(self, kind: ArrayKind, topology: Optional[StripTopology]) -> CompressionMode:
        mode = self._config.for_kind(kind).mode
        if mode & CompressionMode.PREDICTION and not topology:
            logger.info(f"Mesh has no strips, compressing {kind.value} array without prediction")
            mode &= ~CompressionMode.PREDICTION
        return mode

    def pack_mesh(self, mesh: Mesh) -> MeshPayload:
        """
        Compress every array present in ``mesh``.

        Args:
            mesh: The mesh to compress.

        Returns:
            The MeshPayload holding the compressed arrays and the mesh's strips.
        """
        compressed = {}
        for kind, name in ARRAY_FIELDS.items():
            array = getattr(mesh, name)
            if array is None:
                compressed[name] = None
                continue
            compressed[name] = self._codecs[kind].compress(
                array,
                default_extent(kind, array),
                width=self._config.for_kind(kind).width,
                mode=self._mode(kind, mesh.topology),
                strips=mesh.topology,
            )
        return MeshPayload(topology=mesh.topology, **compressed)

    def unpack_mesh(self, payload: MeshPayload) -> Mesh:
        """
        Decompress every array of ``payload``.

        Returns:
            A new Mesh with float32 arrays.
        """
        arrays = {}
        for kind, name in ARRAY_FIELDS.items():
            compressed = getattr(payload, name)
            arrays[name] = (
                self._codecs[kind].decompress(compressed, strips=payload.topology)
                if compressed is not None else None
            )
        return Mesh(topology=payload.topology, **arrays)
