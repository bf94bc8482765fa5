"""
Stream drivers joining a mesh codec to a serializer.

    encode: Mesh --pack--> Payload --serialize_frame--> bytes
    decode: bytes --deserialize_frame--> Payload --unpack--> Mesh

Both directions end with a flush of each stage, codec first on encode and
serializer first on decode, so that buffered data drains in stream order.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Self

import torch

from .model import Mesh
from .payload import AbstractDeserializer, AbstractSerializer, Payload


class AbstractEncoder(ABC):
    """
    Turns meshes into a byte stream.

    Subclasses provide the codec stage (``pack``/``flush_pack``); the
    serializer given at construction provides the byte stage.
    """

    def __init__(self, serializer: AbstractSerializer, payload_device=None):
        """
        Args:
            serializer: Byte stage.
            payload_device: Device payloads are moved to before serialization,
                or None to leave them where ``pack`` put them.
        """
        self._serializer = serializer
        self._payload_device = payload_device

    @abstractmethod
    def pack(self, mesh: Mesh) -> Iterator[Payload]:
        """Yield the payloads of one mesh; a buffering codec may yield none."""
        pass

    @abstractmethod
    def flush_pack(self) -> Iterator[Payload]:
        """Yield the payloads held back after the last mesh."""
        pass

    def _serialize(self, payloads: Iterable[Payload]) -> Iterator[bytes]:
        for payload in payloads:
            if self._payload_device is not None:
                payload = payload.to(self._payload_device)
            yield from self._serializer.serialize_frame(payload)

    def encode_frame(self, mesh: Mesh) -> Iterator[bytes]:
        """Yield the byte chunks of one mesh, possibly none."""
        yield from self._serialize(self.pack(mesh))

    def flush(self) -> Iterator[bytes]:
        """Drain the codec stage, then the serializer."""
        yield from self._serialize(self.flush_pack())
        yield from self._serializer.flush()

    def encode_stream(self, stream: Iterable[Mesh]) -> Iterator[bytes]:
        """Encode every mesh of ``stream`` and flush."""
        for mesh in stream:
            yield from self.encode_frame(mesh)
        yield from self.flush()


class AbstractDecoder(ABC):
    """
    Turns a byte stream back into meshes.

    Subclasses provide the codec stage (``unpack``/``flush_unpack``); the
    deserializer given at construction provides the byte stage.
    """

    def __init__(
        self,
        deserializer: AbstractDeserializer,
        payload_device: str | torch.device | None = None,
        device: str | torch.device | None = None,
    ):
        """
        Args:
            deserializer: Byte stage.
            payload_device: Device payloads are moved to before unpacking.
            device: Device of the decoded meshes.
        """
        self._deserializer = deserializer
        self._payload_device = payload_device
        self._device = device

    def to(self, device: str | torch.device | None) -> Self:
        """Set the device of decoded meshes; returns self."""
        self._device = device
        return self

    @abstractmethod
    def unpack(self, payload: Payload) -> Iterator[Mesh]:
        """Yield the meshes completed by one payload."""
        pass

    @abstractmethod
    def flush_unpack(self) -> Iterator[Mesh]:
        """Yield the meshes held back after the last payload."""
        pass

    def _place(self, meshes: Iterable[Mesh]) -> Iterator[Mesh]:
        for mesh in meshes:
            yield mesh.to(self._device) if self._device is not None else mesh

    def _unpack_all(self, payloads: Iterable[Payload]) -> Iterator[Mesh]:
        for payload in payloads:
            if self._payload_device is not None:
                payload = payload.to(self._payload_device)
            yield from self._place(self.unpack(payload))

    def decode_frame(self, data: bytes) -> Iterator[Mesh]:
        """Feed one chunk; yield the meshes it completes."""
        yield from self._unpack_all(self._deserializer.deserialize_frame(data))

    def flush(self) -> Iterator[Mesh]:
        """Drain the deserializer, then the codec stage."""
        yield from self._unpack_all(self._deserializer.flush())
        yield from self._place(self.flush_unpack())

    def decode_stream(self, stream: Iterable[bytes]) -> Iterator[Mesh]:
        """Decode every chunk of ``stream`` and flush."""
        for data in stream:
            yield from self.decode_frame(data)
        yield from self.flush()
