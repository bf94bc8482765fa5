"""
Command-line interface for qtzcodec.

Usage:
    python -m qtzcodec encode <codec_name> [hydra overrides]
    python -m qtzcodec decode <codec_name> [hydra overrides]

Example:
    python -m qtzcodec encode qtzzstd \
        input.first_mesh_path=data/mesh_0000.npz \
        input.subsequent_format="data/mesh_{:04d}.npz" \
        output.path=compressed.qtz \
        codec.mesh.vertex.width=3 \
        codec.mesh.normal.quantization=false

    python -m qtzcodec decode qtzzstd \
        input.path=compressed.qtz \
        output.first_mesh_path=decoded/mesh_0000.npz \
        output.subsequent_format="decoded/mesh_{:04d}.npz"

Hydra options (after the codec name):
    --help              Show configuration schema
    --cfg job           Show resolved configuration
"""

import logging
import sys
from dataclasses import field, make_dataclass
from typing import Callable, Dict, Iterator, List, Tuple, Type

import hydra
from hydra.core.config_store import ConfigStore
from hydra.core.global_hydra import GlobalHydra
from omegaconf import DictConfig

from .combinations import ENCODERS, DECODERS, describe
from .io import (
    BytesReader,
    BytesReaderConfig,
    BytesWriter,
    BytesWriterConfig,
    MeshReader,
    MeshReaderConfig,
    MeshWriter,
    MeshWriterConfig,
)
from .model import Mesh

logger = logging.getLogger(__name__)


def mesh_nbytes(mesh: Mesh) -> int:
    """Size of the uncompressed arrays of ``mesh``."""
    arrays = (mesh.vertices, mesh.normals, mesh.uvs)
    return sum(array.numel() * array.element_size() for array in arrays if array is not None)


class StreamStats:
    """Running totals of the meshes and bytes passing through a command."""

    def __init__(self):
        self.meshes = 0
        self.raw_bytes = 0
        self.stream_bytes = 0

    def count_meshes(self, meshes: Iterator[Mesh], desc: str) -> Iterator[Mesh]:
        for mesh in meshes:
            strips = len(mesh.topology) if mesh.topology is not None else 0
            logger.info(f"{desc} {self.meshes}: {len(mesh)} elements, {strips} strips")
            self.meshes += 1
            self.raw_bytes += mesh_nbytes(mesh)
            yield mesh

    def count_bytes(self, chunks: Iterator[bytes]) -> Iterator[bytes]:
        for chunk in chunks:
            self.stream_bytes += len(chunk)
            logger.debug(f"Chunk of {len(chunk)} bytes (total: {self.stream_bytes} bytes)")
            yield chunk

    def summary(self) -> str:
        ratio = self.raw_bytes / self.stream_bytes if self.stream_bytes else 0.0
        return (
            f"{self.meshes} meshes, {self.raw_bytes} array bytes, "
            f"{self.stream_bytes} stream bytes (ratio {ratio:.2f})"
        )


# input/output configs of each command
IO_CONFIGS: Dict[str, Tuple[Type, Type]] = {
    "encode": (MeshReaderConfig, BytesWriterConfig),
    "decode": (BytesReaderConfig, MeshWriterConfig),
}


def make_config(command: str, codec_config_cls: Type) -> Type:
    """Dynamically create the top-level config dataclass of a command and codec."""
    input_cls, output_cls = IO_CONFIGS[command]
    return make_dataclass(
        f"{command.capitalize()}{codec_config_cls.__name__}",
        [
            ("input", input_cls, field(default_factory=input_cls)),
            ("output", output_cls, field(default_factory=output_cls)),
            ("codec", codec_config_cls, field(default_factory=codec_config_cls)),
        ],
    )


def make_encode_config(codec_config_cls: Type) -> Type:
    return make_config("encode", codec_config_cls)


def make_decode_config(codec_config_cls: Type) -> Type:
    return make_config("decode", codec_config_cls)


def do_encode(cfg: DictConfig, codec_name: str) -> None:
    """Compress a mesh sequence into one stream file."""
    encoder = ENCODERS[codec_name].build(cfg.codec)
    mesh_reader = MeshReader.from_config(cfg.input)
    bytes_writer = BytesWriter.from_config(cfg.output)

    logger.info(f"Encoding {cfg.input.first_mesh_path} -> {cfg.output.path} with {codec_name}")
    stats = StreamStats()
    meshes = stats.count_meshes(mesh_reader.read(), "Encoding mesh")
    bytes_writer.write(stats.count_bytes(encoder.encode_stream(meshes)))
    logger.info(f"Encoding complete: {stats.summary()}")


def do_decode(cfg: DictConfig, codec_name: str) -> None:
    """Expand a stream file back into a mesh sequence."""
    decoder = DECODERS[codec_name].build(cfg.codec)
    bytes_reader = BytesReader.from_config(cfg.input)
    mesh_writer = MeshWriter.from_config(cfg.output)

    logger.info(f"Decoding {cfg.input.path} -> {cfg.output.first_mesh_path} with {codec_name}")
    stats = StreamStats()
    chunks = stats.count_bytes(bytes_reader.read())
    mesh_writer.write(stats.count_meshes(decoder.decode_stream(chunks), "Decoded mesh"))
    logger.info(f"Decoding complete: {stats.summary()}")


COMMANDS: Dict[str, Tuple[Dict, Callable[[DictConfig, str], None]]] = {
    "encode": (ENCODERS, do_encode),
    "decode": (DECODERS, do_decode),
}


def run(command: str, codec_name: str, hydra_args: List[str]) -> None:
    """Resolve the config of ``command`` with hydra, then run it."""
    registry, action = COMMANDS[command]
    config_cls = make_config(command, registry[codec_name].config_class)

    GlobalHydra.instance().clear()
    ConfigStore.instance().store(name="config", node=config_cls)

    @hydra.main(version_base=None, config_path=None, config_name="config")
    def _main(cfg: DictConfig) -> None:
        action(cfg, codec_name)

    sys.argv = [sys.argv[0]] + hydra_args
    _main()


def usage() -> None:
    print("Usage: python -m qtzcodec <encode|decode> <codec> [options]")
    for command, (registry, _) in COMMANDS.items():
        print(f"{command.capitalize()}rs:")
        for line in describe(registry):
            print(f"  {line}")
    print("Use --help after the codec name for configuration options.")


def main() -> None:
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if len(sys.argv) < 2 or sys.argv[1] in ("--help", "-h", "help"):
        usage()
        sys.exit(0 if len(sys.argv) >= 2 else 1)

    command = sys.argv[1]
    if command not in COMMANDS:
        sys.exit(f"Error: Unknown command '{command}'. Use one of {list(COMMANDS)}.")

    registry, _ = COMMANDS[command]
    if len(sys.argv) < 3:
        sys.exit(f"Error: Please specify a codec for {command}. Available: {sorted(registry)}")

    codec_name = sys.argv[2]
    if codec_name not in registry:
        sys.exit(f"Error: Unknown {command}r '{codec_name}'. Available: {sorted(registry)}")

    # the rest goes to hydra: overrides, --help, --cfg
    run(command, codec_name, sys.argv[3:])


if __name__ == "__main__":
    main()
