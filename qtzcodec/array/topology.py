"""
Triangle strip topology and anchor identification.

A topology is stored as a flat index arena plus strip boundary offsets, so
the anchor set can be computed once and reused by compress and decompress.
"""

from functools import cached_property
from typing import FrozenSet, Iterable, Iterator, List, Optional, Self, Sequence, Union

import torch

from ..errors import InvalidTopology

# number of leading indices of each strip stored at full precision
ANCHORS_PER_STRIP = 3


class StripTopology:
    """
    Ordered collection of strips over the elements of a geometry array.

    Strip ``i`` is ``indices[offsets[i]:offsets[i + 1]]``.

    Example:
        topology = StripTopology.from_strips([[0, 1, 2, 3], [2, 3, 4, 5]])
        topology.anchors()  # frozenset({0, 1, 2, 3})
    """

    def __init__(self, indices: torch.Tensor, offsets: torch.Tensor):
        """
        Initialize the topology from its flat representation.

        Args:
            indices: Concatenated strip indices, shape (M,).
            offsets: Strip boundaries, shape (S + 1,), starting at 0 and
                ending at M.

        Raises:
            InvalidTopology: If the offsets are malformed, an index is
                negative, or a strip is shorter than 3 indices.
        """
        indices = torch.as_tensor(indices, dtype=torch.int64).reshape(-1)
        offsets = torch.as_tensor(offsets, dtype=torch.int64).reshape(-1)
        if offsets.numel() == 0 or offsets[0].item() != 0 or offsets[-1].item() != indices.numel():
            raise InvalidTopology(
                f"Strip offsets must start at 0 and end at {indices.numel()}, got {offsets.tolist()}"
            )
        lengths = offsets[1:] - offsets[:-1]
        if (lengths < ANCHORS_PER_STRIP).any():
            short = int(torch.nonzero(lengths < ANCHORS_PER_STRIP)[0].item())
            raise InvalidTopology(
                f"Strip {short} has {int(lengths[short].item())} indices, "
                f"need at least {ANCHORS_PER_STRIP}"
            )
        if (indices < 0).any():
            raise InvalidTopology("Strip indices must be non-negative")
        self._indices = indices
        self._offsets = offsets

    @classmethod
    def from_strips(cls, strips: Iterable[Sequence[int]]) -> Self:
        """Build a topology from a sequence of index sequences."""
        strips = [list(strip) for strip in strips]
        offsets = [0]
        for strip in strips:
            offsets.append(offsets[-1] + len(strip))
        indices = [index for strip in strips for index in strip]
        return cls(
            indices=torch.tensor(indices, dtype=torch.int64),
            offsets=torch.tensor(offsets, dtype=torch.int64),
        )

    @classmethod
    def coerce(cls, strips: Union["StripTopology", Iterable[Sequence[int]], None]) -> Optional[Self]:
        """Accept a topology, a list of strips, or None."""
        if strips is None or isinstance(strips, StripTopology):
            return strips
        return cls.from_strips(strips)

    @property
    def indices(self) -> torch.Tensor:
        return self._indices

    @property
    def offsets(self) -> torch.Tensor:
        return self._offsets

    def __len__(self) -> int:
        return self._offsets.numel() - 1

    def __bool__(self) -> bool:
        return len(self) > 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, StripTopology):
            return NotImplemented
        return torch.equal(self._indices, other._indices) and torch.equal(self._offsets, other._offsets)

    def __repr__(self) -> str:
        return f"StripTopology(strips={len(self)}, indices={self._indices.numel()})"

    def strips(self) -> Iterator[List[int]]:
        """Iterate over the strips as lists of indices."""
        flat = self._indices.tolist()
        bounds = self._offsets.tolist()
        for start, end in zip(bounds[:-1], bounds[1:]):
            yield flat[start:end]

    def max_index(self) -> int:
        """Largest index referenced, or -1 for an empty topology."""
        return int(self._indices.max().item()) if self._indices.numel() else -1

    def validate(self, count: int) -> None:
        """
        Check that every index addresses an element of an array of ``count`` elements.

        Raises:
            InvalidTopology: If an index is out of bounds.
        """
        if self.max_index() >= count:
            raise InvalidTopology(
                f"Strip index {self.max_index()} out of bounds for {count} elements"
            )

    @cached_property
    def _anchor_indices(self) -> torch.Tensor:
        starts = self._offsets[:-1]
        positions = (starts.unsqueeze(1) + torch.arange(ANCHORS_PER_STRIP)).reshape(-1)
        return torch.unique(self._indices[positions])

    def anchors(self) -> FrozenSet[int]:
        """
        The union of the first three indices of every strip.

        Depends only on the topology, never on array content.
        """
        return frozenset(self._anchor_indices.tolist())

    def anchor_mask(self, count: int) -> torch.Tensor:
        """
        Boolean mask of the anchors of an array of ``count`` elements.

        Raises:
            InvalidTopology: If an index is out of bounds.
        """
        self.validate(count)
        mask = torch.zeros(count, dtype=torch.bool)
        mask[self._anchor_indices] = True
        return mask
