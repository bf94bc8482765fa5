"""
Compression and decompression of vertex, normal and texture-coordinate arrays.

The pipeline is:
    1. (normals only) project unit normals to azimuth/elevation pairs
    2. (Prediction) keep strip anchors verbatim and replace the other strip
       elements by parallelogram residuals
    3. (Quantization or Prediction) quantize to fixed-width integer codes
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Self, Sequence, Union

import torch

from ..errors import CodecError, ModeRequiresTopology, SizeMismatch
from ..extent import BoundingExtent
from ..payload import Payload
from .azimuth import project_azimuth, unproject_azimuth
from .predict import predict_parallelogram, unpredict_parallelogram
from .quant import check_width, clamp_codes, precision_step, quantize, unquantize
from .topology import StripTopology

logger = logging.getLogger(__name__)

Strips = Union[StripTopology, Iterable[Sequence[int]], None]


class CompressionMode(enum.IntFlag):
    """Bit set selecting the optional stages of the pipeline."""
    NONE = 0
    QUANTIZATION = 1 << 0
    PREDICTION = 1 << 1


ALL_MODES = CompressionMode.QUANTIZATION | CompressionMode.PREDICTION


class ArrayKind(enum.Enum):
    """The three kinds of geometry arrays."""
    VERTEX = "vertex"
    NORMAL = "normal"
    UV = "uv"

    @property
    def arity(self) -> int:
        """Components per element of the source array."""
        return 2 if self is ArrayKind.UV else 3

    @property
    def stored_arity(self) -> int:
        """Components per element once projected, i.e. as stored in the payload."""
        return 2 if self is not ArrayKind.VERTEX else 3

    @property
    def projected(self) -> bool:
        return self is ArrayKind.NORMAL


def check_mode(mode) -> CompressionMode:
    """Validate a mode bit set given as a CompressionMode or a plain int."""
    if isinstance(mode, bool) or not isinstance(mode, int) or int(mode) & ~int(ALL_MODES):
        raise CodecError(f"Unknown compression mode: {mode!r}")
    return CompressionMode(int(mode))


@dataclass
class CompressedArray(Payload):
    """
    A compressed geometry array.

    Elements are split in two groups by a rule that depends only on ``mode``
    and the strip topology: raw elements (anchors under Prediction, every
    element when neither flag is set) and coded elements. Each group keeps
    the index order of the source array.

    Attributes:
        kind: The array kind; fixes the stored arity D.
        extent: The float32-representable extent the codes are relative to,
            in the stored domain (azimuth/elevation for normals).
        width: Bytes per code, in [1, 4].
        mode: The stages that were applied.
        count: Number of elements N of the source array.
        raw: Raw elements, shape (R, D), dtype float32.
        codes: Coded elements, shape (N - R, D), dtype int32.
    """
    kind: ArrayKind
    extent: BoundingExtent
    width: int
    mode: CompressionMode
    count: int
    raw: torch.Tensor  # (R, D) float32
    codes: torch.Tensor  # (N - R, D) int32

    def to(self, device) -> Self:
        """
        Move the Payload to the specified device.

        The extent stays on the CPU; it is only a pair of small vectors.
        """
        return CompressedArray(
            kind=self.kind,
            extent=self.extent,
            width=self.width,
            mode=self.mode,
            count=self.count,
            raw=self.raw.to(device),
            codes=self.codes.to(device),
        )


def resolve_topology(mode: CompressionMode, strips: Strips, count: int) -> Optional[StripTopology]:
    """
    Coerce and validate the strips supplied for an array of ``count`` elements.

    Raises:
        ModeRequiresTopology: If ``mode`` has Prediction and no strip is given.
        InvalidTopology: If a strip is too short or an index out of bounds.
    """
    topology = StripTopology.coerce(strips)
    if mode & CompressionMode.PREDICTION and not topology:
        raise ModeRequiresTopology("Prediction requires a non-empty strip topology")
    if topology is not None:
        topology.validate(count)
    return topology


def raw_mask(count: int, mode: CompressionMode, topology: Optional[StripTopology]) -> torch.Tensor:
    """
    Which elements are stored raw rather than as codes.

    Anchors under Prediction, all elements when neither flag is set,
    none under plain Quantization.
    """
    if mode & CompressionMode.PREDICTION:
        return topology.anchor_mask(count)
    if mode & CompressionMode.QUANTIZATION:
        return torch.zeros(count, dtype=torch.bool)
    return torch.ones(count, dtype=torch.bool)


class ArrayCodec:
    """
    Compressor/decompressor for one kind of geometry array.

    Example:
        codec = ArrayCodec(ArrayKind.VERTEX)
        compressed = codec.compress(
            vertices, compute_extent(vertices), width=2,
            mode=CompressionMode.QUANTIZATION | CompressionMode.PREDICTION,
            strips=[[0, 1, 2, 3]],
        )
        restored = codec.decompress(compressed, strips=[[0, 1, 2, 3]])
    """

    def __init__(self, kind: ArrayKind):
        self.kind = ArrayKind(kind)

    def __repr__(self) -> str:
        return f"ArrayCodec({self.kind.value})"

    def _check_extent(self, extent: BoundingExtent) -> None:
        if extent.arity != self.kind.stored_arity:
            raise SizeMismatch(
                f"{self.kind.value} arrays need a {self.kind.stored_arity}-component extent, "
                f"got {extent.arity}"
            )

    def _to_stored(self, array) -> torch.Tensor:
        """Canonicalize the source array to the float32 values the payload can hold exactly."""
        array = torch.as_tensor(array)
        if array.ndim != 2 or array.shape[1] != self.kind.arity:
            raise SizeMismatch(
                f"{self.kind.value} arrays must have shape (N, {self.kind.arity}), "
                f"got {tuple(array.shape)}"
            )
        values = array.detach().cpu().to(torch.float32)
        if self.kind.projected:
            values = project_azimuth(values).to(torch.float32)
        return values.to(torch.float64)

    def compress(
        self,
        array,
        extent: BoundingExtent,
        width: int,
        mode: CompressionMode,
        strips: Strips = None,
    ) -> CompressedArray:
        """
        Compress an array.

        Args:
            array: Source array, shape (N, arity). Not modified.
            extent: Bounds the codes are relative to, in the stored domain
                (for normals, azimuth/elevation; see AZIMUTH_EXTENT).
            width: Bytes per code, in [1, 4].
            mode: Stages to apply.
            strips: Strip topology, required when ``mode`` has Prediction.

        Returns:
            A new CompressedArray sharing no storage with ``array``.

        Raises:
            InvalidWidth: If ``width`` is outside [1, 4].
            ModeRequiresTopology: If Prediction is set without strips.
            InvalidTopology: If a strip is too short or an index out of bounds.
            SizeMismatch: If the array or extent arity does not match the kind.
        """
        width = check_width(width)
        mode = check_mode(mode)
        values = self._to_stored(array)
        count = values.shape[0]
        topology = resolve_topology(mode, strips, count)
        self._check_extent(extent)

        extent = extent.to_float32()
        step = precision_step(extent, width)
        stored = raw_mask(count, mode, topology)
        clamped = 0

        if mode & CompressionMode.PREDICTION:
            codes, predicted, clamped = predict_parallelogram(values, topology, stored, step, width)
            rest = ~stored & ~predicted
            codes[rest], out_of_range = clamp_codes(quantize(values[rest], step, extent.bbl), width)
            clamped += out_of_range
            codes = codes[~stored]
        elif mode & CompressionMode.QUANTIZATION:
            codes, clamped = clamp_codes(quantize(values, step, extent.bbl), width)
        else:
            codes = torch.zeros((0, values.shape[1]), dtype=torch.int64)

        if clamped:
            logger.warning(
                f"{clamped} {self.kind.value} components fell outside the {width}-byte code range and were clamped"
            )
        logger.debug(
            f"Compressed {count} {self.kind.value} elements: width={width} mode={mode!r} "
            f"raw={int(stored.sum().item())}"
        )

        return CompressedArray(
            kind=self.kind,
            extent=extent,
            width=width,
            mode=mode,
            count=count,
            raw=values[stored].to(torch.float32),
            codes=codes.to(torch.int32),
        )

    def decompress(self, compressed: CompressedArray, strips: Strips = None) -> torch.Tensor:
        """
        Decompress an array.

        Args:
            compressed: Output of ``compress`` for the same kind.
            strips: The strip topology used to compress, required when the
                payload was compressed with Prediction.

        Returns:
            A new array, shape (N, arity), dtype float32.

        Raises:
            InvalidWidth: If the recorded width is outside [1, 4].
            ModeRequiresTopology: If Prediction is set without strips.
            InvalidTopology: If a strip is too short or an index out of bounds.
            SizeMismatch: If the raw/coded element counts disagree with
                ``count`` and the topology, or an arity does not match the kind.
        """
        if compressed.kind is not self.kind:
            raise SizeMismatch(f"Cannot decode a {compressed.kind.value} array with {self!r}")
        width = check_width(compressed.width)
        mode = check_mode(compressed.mode)
        count = compressed.count
        topology = resolve_topology(mode, strips, count)
        self._check_extent(compressed.extent)

        stored = raw_mask(count, mode, topology)
        n_raw = int(stored.sum().item())
        dim = self.kind.stored_arity
        raw = compressed.raw.detach().cpu()
        codes = compressed.codes.detach().cpu()
        if tuple(raw.shape) != (n_raw, dim) or tuple(codes.shape) != (count - n_raw, dim):
            raise SizeMismatch(
                f"Expected {n_raw} raw and {count - n_raw} coded elements of {dim} components "
                f"for {count} elements, got raw {tuple(raw.shape)} and codes {tuple(codes.shape)}"
            )

        extent = compressed.extent
        step = precision_step(extent, width)
        values = torch.zeros((count, dim), dtype=torch.float64)
        values[stored] = raw.to(torch.float64)

        if mode & CompressionMode.PREDICTION:
            full_codes = torch.zeros((count, dim), dtype=torch.int64)
            full_codes[~stored] = codes.to(torch.int64)
            predicted = unpredict_parallelogram(full_codes, values, topology, stored, step)
            rest = ~stored & ~predicted
            values[rest] = unquantize(full_codes[rest], step, extent.bbl)
        elif mode & CompressionMode.QUANTIZATION:
            values = unquantize(codes, step, extent.bbl)

        logger.debug(
            f"Decompressed {count} {self.kind.value} elements: width={width} mode={mode!r} raw={n_raw}"
        )

        if self.kind.projected:
            values = unproject_azimuth(values)
        return values.to(torch.float32)
