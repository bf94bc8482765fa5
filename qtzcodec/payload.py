"""
Intermediate payloads and the byte-stream contracts around them.

Encoding is split in two: an encoder turns meshes into payloads, then a
serializer turns payloads into byte chunks. Decoding runs the same two
stages backwards. Chunks on either side of a serializer carry no alignment
guarantee.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Self


@dataclass
class Payload(ABC):
    """Compressed form of a mesh or array, not yet turned into bytes."""

    @abstractmethod
    def to(self, device) -> Self:
        """
        Return a copy whose tensors live on ``device`` (e.g. 'cpu', 'cuda').
        """
        pass


class AbstractSerializer(ABC):
    """Turns a sequence of payloads into a byte stream."""

    @abstractmethod
    def serialize_frame(self, payload: Payload) -> Iterator[bytes]:
        """
        Append one payload to the stream.

        Yields:
            Zero or more byte chunks; buffered serializers may hold data back
            until ``flush``.
        """
        pass

    @abstractmethod
    def flush(self) -> Iterator[bytes]:
        """Emit whatever is still held back once the last payload is in."""
        pass


class AbstractDeserializer(ABC):
    """Rebuilds payloads from a byte stream fed in arbitrary chunks."""

    @abstractmethod
    def deserialize_frame(self, data: bytes) -> Iterator[Payload]:
        """
        Feed one chunk of the stream.

        Yields:
            Every payload completed by this chunk, possibly none.
        """
        pass

    @abstractmethod
    def flush(self) -> Iterator[Payload]:
        """
        Emit the payloads still buffered at the end of the stream.

        Raises:
            ValueError: If trailing bytes do not form a complete payload.
        """
        pass
