"""
Length-prefixed framing of MeshPayloads, optionally zstd-compressed.

Each MeshPayload becomes one frame:
    [topology_len][topology][vertex_len][vertex][normal_len][normal][uv_len][uv]
A zero length marks an absent part. The array parts use the byte layout of
``qtzcodec.array.wire``; their strips are carried by the topology part.
"""

import struct
from typing import Iterator, Optional

import numpy as np
import torch
import zstandard as zstd

from ..array.topology import StripTopology
from ..array.wire import pack_compressed_array, unpack_compressed_array
from ..payload import AbstractDeserializer, AbstractSerializer
from .interface import ARRAY_FIELDS, MeshPayload

# 4-byte big-endian length prefix (max 4GB per part)
_LEN = struct.Struct(">I")
_U32 = np.dtype("<u4")


def pack_topology(topology: StripTopology) -> bytes:
    """
    Serialize strips as ``<u4 strip_count, <u4 offsets[count + 1], <u4 indices``.
    """
    offsets = topology.offsets.numpy().astype(_U32)
    indices = topology.indices.numpy().astype(_U32)
    return np.array([len(topology)], dtype=_U32).tobytes() + offsets.tobytes() + indices.tobytes()


def unpack_topology(data: bytes) -> StripTopology:
    """
    Parse the output of ``pack_topology``.

    Raises:
        ValueError: If ``data`` is truncated or has trailing bytes.
    """
    if len(data) < _U32.itemsize:
        raise ValueError("Incomplete data: missing strip count")
    (strip_count,) = np.frombuffer(data, dtype=_U32, count=1)
    offsets_end = _U32.itemsize * (int(strip_count) + 2)
    if len(data) < offsets_end:
        raise ValueError("Incomplete data: missing strip offsets")
    offsets = np.frombuffer(data, dtype=_U32, count=int(strip_count) + 1, offset=_U32.itemsize)
    if len(data) != offsets_end + _U32.itemsize * int(offsets[-1]):
        raise ValueError(
            f"Strip data holds {len(data) - offsets_end} index bytes, expected {_U32.itemsize * int(offsets[-1])}"
        )
    indices = (
        np.frombuffer(data, dtype=_U32, offset=offsets_end)
        if len(data) > offsets_end else np.zeros(0, dtype=_U32)
    )
    return StripTopology(
        indices=torch.from_numpy(indices.astype(np.int64)),
        offsets=torch.from_numpy(offsets.astype(np.int64)),
    )


def pack_mesh_payload(payload: MeshPayload) -> bytes:
    """Frame the parts of one MeshPayload."""
    topology = pack_topology(payload.topology) if payload.topology is not None else b""
    parts = [_LEN.pack(len(topology)), topology]
    for name in ARRAY_FIELDS.values():
        compressed = getattr(payload, name)
        blob = pack_compressed_array(compressed, payload.topology) if compressed is not None else b""
        parts += [_LEN.pack(len(blob)), blob]
    return b"".join(parts)


class MeshSerializer(AbstractSerializer):
    """
    Streaming serializer using length-prefix framing, with optional zstd.

    Each MeshPayload is framed, then (if a zstd level is set) compressed
    incrementally using zstd streaming compression.
    """

    def __init__(self, zstd_level: Optional[int] = 7):
        """
        Initialize the serializer.

        Args:
            zstd_level: Zstd compression level (1-22), or None to write the
                frames uncompressed. Default is 7.
        """
        self._compressor = (
            zstd.ZstdCompressor(level=zstd_level).compressobj()
            if zstd_level is not None else None
        )

    def serialize_frame(self, payload: MeshPayload) -> Iterator[bytes]:
        """
        Frame and compress a MeshPayload.

        Yields:
            Byte chunks (may yield zero chunks if buffered).
        """
        framed = pack_mesh_payload(payload)
        out = self._compressor.compress(framed) if self._compressor is not None else framed
        if out:
            yield out

    def flush(self) -> Iterator[bytes]:
        """
        Flush remaining compressed data.

        Yields:
            Final compressed byte chunks.
        """
        if self._compressor is None:
            return
        tail = self._compressor.flush()
        if tail:
            yield tail


class MeshDeserializer(AbstractDeserializer):
    """
    Streaming deserializer for the output of MeshSerializer.

    Decompresses incoming bytes incrementally (when zstd was used), buffers
    until a complete frame is available, then yields MeshPayloads.
    """

    def __init__(self, compressed: bool = True):
        """
        Initialize the deserializer.

        Args:
            compressed: Whether the stream was written with a zstd level.
        """
        self._decompressor = zstd.ZstdDecompressor().decompressobj() if compressed else None
        self._buffer = bytearray()

    def deserialize_frame(self, data: bytes) -> Iterator[MeshPayload]:
        """
        Decompress and deserialize bytes to MeshPayload objects.

        Yields:
            Complete MeshPayload objects as they become available.
        """
        decompressed = self._decompressor.decompress(data) if self._decompressor is not None else data
        if decompressed:
            self._buffer.extend(decompressed)

        yield from self._extract_payloads()

    def flush(self) -> Iterator[MeshPayload]:
        """
        Flush any remaining buffered data.

        Yields:
            Any remaining MeshPayload objects in the buffer.
        """
        yield from self._extract_payloads()

        # If there's leftover data, it's incomplete/corrupted
        if self._buffer:
            raise ValueError(
                f"Incomplete data in buffer: {len(self._buffer)} bytes remaining"
            )

    def _frame_parts(self) -> Optional[list]:
        """Split the frame at the head of the buffer, or None if it is incomplete."""
        parts = []
        offset = 0
        for _ in range(1 + len(ARRAY_FIELDS)):
            if len(self._buffer) < offset + _LEN.size:
                return None
            (length,) = _LEN.unpack(self._buffer[offset: offset + _LEN.size])
            offset += _LEN.size
            if len(self._buffer) < offset + length:
                return None
            parts.append(bytes(self._buffer[offset: offset + length]))
            offset += length
        del self._buffer[:offset]
        return parts

    def _extract_payloads(self) -> Iterator[MeshPayload]:
        """
        Extract complete payloads from the buffer.

        Yields:
            Complete MeshPayload objects.
        """
        while True:
            parts = self._frame_parts()
            if parts is None:
                break

            topology_bytes, *array_bytes = parts
            topology = unpack_topology(topology_bytes) if topology_bytes else None

            arrays = {}
            for (kind, name), blob in zip(ARRAY_FIELDS.items(), array_bytes):
                arrays[name] = unpack_compressed_array(blob, kind, topology) if blob else None
            if arrays["vertices"] is None:
                raise ValueError("Incomplete data: missing vertex array")

            yield MeshPayload(topology=topology, **arrays)
