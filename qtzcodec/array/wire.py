"""
Byte layout of a compressed array.

Header (little-endian):
    [bbl: D x f32][ufr: D x f32][width: u8][mode: u8][count: u32]

Payload, one record per element in index order:
    raw element:   D x f32
    coded element: D x signed two's-complement integers of `width` bytes

Records carry no tag. Whether an element is raw is recomputed from the mode
and the strip topology, which travels outside this layout.
"""

import struct

import numpy as np
import torch

from ..errors import SizeMismatch
from ..extent import BoundingExtent
from .codec import ArrayKind, CompressedArray, Strips, check_mode, raw_mask, resolve_topology
from .quant import check_width

_FLOAT = np.dtype("<f4")
_INT32 = np.dtype("<i4")


def _header(dim: int) -> struct.Struct:
    return struct.Struct(f"<{dim}f{dim}fBBI")


def header_size(kind: ArrayKind) -> int:
    """Size in bytes of the header of a ``kind`` array."""
    return _header(kind.stored_arity).size


def pack_codes(codes: np.ndarray, width: int) -> np.ndarray:
    """
    Truncate int32 codes to their low ``width`` bytes.

    Args:
        codes: Codes, shape (Q, D), each within the signed range of ``width``.
        width: Bytes per code.

    Returns:
        Byte matrix, shape (Q, D * width), dtype uint8.
    """
    codes = np.ascontiguousarray(codes, dtype=_INT32)
    q, d = codes.shape
    return codes.view(np.uint8).reshape(q, d, 4)[:, :, :width].reshape(q, d * width)


def unpack_codes(data: np.ndarray, width: int, dim: int) -> np.ndarray:
    """
    Sign-extend ``width``-byte codes to int32.

    Args:
        data: Byte matrix, shape (Q, dim * width), dtype uint8.
        width: Bytes per code.
        dim: Components per element.

    Returns:
        Codes, shape (Q, dim), dtype int32.
    """
    q = data.shape[0]
    low = data.reshape(q, dim, width)
    negative = low[:, :, width - 1] >= 0x80
    fill = np.where(negative, np.uint8(0xFF), np.uint8(0x00)).astype(np.uint8)
    high = np.repeat(fill[:, :, None], 4 - width, axis=2)
    full = np.ascontiguousarray(np.concatenate([low, high], axis=2))
    return full.view(_INT32).reshape(q, dim).astype(np.int32)


def _record_layout(mask: np.ndarray, dim: int, width: int, start: int):
    """Byte offset of every record, and the total payload size."""
    sizes = np.where(mask, dim * _FLOAT.itemsize, dim * width)
    offsets = start + np.concatenate([[0], np.cumsum(sizes)[:-1]]) if mask.size else np.zeros(0, dtype=np.int64)
    return offsets.astype(np.int64), int(sizes.sum())


def pack_compressed_array(compressed: CompressedArray, strips: Strips = None) -> bytes:
    """
    Serialize a CompressedArray to its byte layout.

    Args:
        compressed: The array to serialize.
        strips: The strip topology it was compressed with, required when
            its mode has Prediction.

    Returns:
        The header followed by one record per element.
    """
    kind = compressed.kind
    dim = kind.stored_arity
    width = check_width(compressed.width)
    mode = check_mode(compressed.mode)
    header = _header(dim)
    topology = resolve_topology(mode, strips, compressed.count)
    mask = raw_mask(compressed.count, mode, topology).numpy()

    raw = compressed.raw.detach().cpu().numpy().astype(_FLOAT)
    codes = compressed.codes.detach().cpu().numpy()
    if raw.shape[0] != int(mask.sum()) or raw.shape[0] + codes.shape[0] != compressed.count:
        raise SizeMismatch(
            f"Payload holds {raw.shape[0]} raw and {codes.shape[0]} coded elements, "
            f"layout expects {int(mask.sum())} raw of {compressed.count}"
        )

    offsets, payload_size = _record_layout(mask, dim, width, header.size)
    buffer = np.zeros(header.size + payload_size, dtype=np.uint8)
    buffer[:header.size] = np.frombuffer(
        header.pack(
            *compressed.extent.bbl.tolist(),
            *compressed.extent.ufr.tolist(),
            width,
            int(mode),
            compressed.count,
        ),
        dtype=np.uint8,
    )

    raw_bytes = np.ascontiguousarray(raw).view(np.uint8).reshape(raw.shape[0], dim * _FLOAT.itemsize)
    raw_positions = offsets[mask][:, None] + np.arange(dim * _FLOAT.itemsize)
    buffer[raw_positions] = raw_bytes

    code_bytes = pack_codes(codes.reshape(-1, dim), width)
    code_positions = offsets[~mask][:, None] + np.arange(dim * width)
    buffer[code_positions] = code_bytes

    return buffer.tobytes()


def unpack_compressed_array(data: bytes, kind: ArrayKind, strips: Strips = None) -> CompressedArray:
    """
    Parse the byte layout of a compressed array.

    Args:
        data: Output of ``pack_compressed_array``.
        kind: The array kind; fixes the stored arity.
        strips: The strip topology, required when the mode has Prediction.

    Returns:
        The CompressedArray.

    Raises:
        SizeMismatch: If ``data`` is shorter or longer than the header and
            the records it announces.
        InvalidWidth: If the width byte is outside [1, 4].
        ModeRequiresTopology: If the mode has Prediction and no strips are given.
        InvalidTopology: If a strip index is out of bounds for the count.
    """
    kind = ArrayKind(kind)
    dim = kind.stored_arity
    header = _header(dim)
    if len(data) < header.size:
        raise SizeMismatch(f"Need {header.size} header bytes, got {len(data)}")

    fields = header.unpack_from(data)
    bbl, ufr = fields[:dim], fields[dim:2 * dim]
    width = check_width(fields[2 * dim])
    mode = check_mode(fields[2 * dim + 1])
    count = fields[2 * dim + 2]

    topology = resolve_topology(mode, strips, count)
    mask = raw_mask(count, mode, topology).numpy()

    offsets, payload_size = _record_layout(mask, dim, width, header.size)
    if len(data) != header.size + payload_size:
        raise SizeMismatch(
            f"{count} {kind.value} elements need {header.size + payload_size} bytes, got {len(data)}"
        )

    buffer = np.frombuffer(data, dtype=np.uint8)
    raw_positions = offsets[mask][:, None] + np.arange(dim * _FLOAT.itemsize)
    raw = np.ascontiguousarray(buffer[raw_positions]).view(_FLOAT).reshape(-1, dim)
    code_positions = offsets[~mask][:, None] + np.arange(dim * width)
    codes = unpack_codes(buffer[code_positions], width, dim)

    return CompressedArray(
        kind=kind,
        extent=BoundingExtent.of(bbl, ufr),
        width=width,
        mode=mode,
        count=count,
        raw=torch.from_numpy(raw.astype(np.float32)),
        codes=torch.from_numpy(codes),
    )
