"""
Named encoder and decoder builds, selectable from the command line.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Type

from ..pipeline import AbstractDecoder, AbstractEncoder


@dataclass(frozen=True)
class CodecEntry:
    """
    A named build.

    Attributes:
        name: Name used on the command line.
        factory: Builds the encoder or decoder from an instance of
            ``config_class`` (or the DictConfig hydra resolved from it).
        config_class: Dataclass describing the build's options.
        description: One-line summary shown in the usage text.
    """
    name: str
    factory: Callable
    config_class: Type
    description: str = ""

    def build(self, config):
        return self.factory(config)


ENCODERS: Dict[str, CodecEntry] = {}
DECODERS: Dict[str, CodecEntry] = {}


def _register(registry: Dict[str, CodecEntry], entry: CodecEntry) -> None:
    if entry.name in registry:
        raise ValueError(f"'{entry.name}' is already registered")
    registry[entry.name] = entry


def register_encoder(
    name: str,
    factory: Callable[..., AbstractEncoder],
    config_class: Type,
    description: str = "",
) -> None:
    """Register an encoder build under ``name``."""
    _register(ENCODERS, CodecEntry(name, factory, config_class, description))


def register_decoder(
    name: str,
    factory: Callable[..., AbstractDecoder],
    config_class: Type,
    description: str = "",
) -> None:
    """Register a decoder build under ``name``."""
    _register(DECODERS, CodecEntry(name, factory, config_class, description))


def describe(registry: Dict[str, CodecEntry]) -> List[str]:
    """Usage lines, one per entry, sorted by name."""
    return [f"{name}: {registry[name].description}" for name in sorted(registry)]
