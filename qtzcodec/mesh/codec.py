from typing import Iterator, Optional

from ..model import Mesh
from ..payload import AbstractDeserializer, AbstractSerializer
from ..pipeline import AbstractDecoder, AbstractEncoder
from .interface import MeshCodecConfig, MeshCodecInterface, MeshPayload


class MeshEncoder(AbstractEncoder):
    """
    Compresses each mesh on its own into one MeshPayload.

    Meshes share no state, so nothing is held back between them.
    """

    def __init__(
        self,
        serializer: AbstractSerializer,
        config: Optional[MeshCodecConfig] = None,
        payload_device=None,
    ):
        """
        Args:
            serializer: Byte stage, e.g. MeshSerializer.
            config: Width and stages per array kind; defaults to MeshCodecConfig().
            payload_device: Device payloads are moved to before serialization.
        """
        super().__init__(serializer, payload_device=payload_device)
        self._interface = MeshCodecInterface(config)

    def pack(self, mesh: Mesh) -> Iterator[MeshPayload]:
        yield self._interface.pack_mesh(mesh)

    def flush_pack(self) -> Iterator[MeshPayload]:
        return iter(())


class MeshDecoder(AbstractDecoder):
    """
    Rebuilds each mesh from its own MeshPayload.

    Widths and stages are read from the payloads, so no codec config is needed.
    """

    def __init__(
        self,
        deserializer: AbstractDeserializer,
        payload_device=None,
        device=None,
    ):
        super().__init__(deserializer, payload_device=payload_device, device=device)
        self._interface = MeshCodecInterface()

    def unpack(self, payload: MeshPayload) -> Iterator[Mesh]:
        yield self._interface.unpack_mesh(payload)

    def flush_unpack(self) -> Iterator[Mesh]:
        return iter(())
