"""
Chunked file access for compressed mesh streams.
"""

import os
from typing import Iterator, Self

from .config import BytesReaderConfig, BytesWriterConfig


class BytesReader:
    """
    Yields a stream file in fixed-size chunks.

    Chunks do not follow payload boundaries; the deserializers buffer.
    """

    def __init__(self, path: str, chunk_size: int = 64 * 1024):
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self._path = path
        self._chunk_size = chunk_size

    @classmethod
    def from_config(cls, config: BytesReaderConfig) -> Self:
        return cls(path=config.path, chunk_size=config.chunk_size)

    def read(self) -> Iterator[bytes]:
        """
        Yields:
            Chunks of at most ``chunk_size`` bytes, in file order.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        if not os.path.exists(self._path):
            raise FileNotFoundError(f"File not found: {self._path}")

        with open(self._path, "rb") as f:
            while True:
                chunk = f.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk


class BytesWriter:
    """
    Stores a stream in a file.

    The chunks go to ``<path>.partial``, which replaces ``path`` only once the
    stream is exhausted. A failed encode leaves nothing at ``path``.
    """

    def __init__(self, path: str):
        self._path = path

    @classmethod
    def from_config(cls, config: BytesWriterConfig) -> Self:
        return cls(path=config.path)

    def write(self, data: Iterator[bytes]) -> int:
        """
        Drain ``data`` into the file.

        Returns:
            The number of bytes written.

        Raises:
            FileExistsError: If the target file already exists.
        """
        if os.path.exists(self._path):
            raise FileExistsError(f"File already exists: {self._path}")
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)

        partial = self._path + ".partial"
        written = 0
        try:
            with open(partial, "wb") as f:
                for chunk in data:
                    f.write(chunk)
                    written += len(chunk)
            os.replace(partial, self._path)
        finally:
            if os.path.exists(partial):
                os.remove(partial)
        return written
