"""
Bounding extent of a geometry array.

The extent is the pair of opposite corners (``bbl`` minimum, ``ufr`` maximum)
that is mapped onto the integer code range by the quantizer.
"""

from dataclasses import dataclass
from typing import Self, Sequence

import numpy as np
import torch

from .errors import CodecError


@dataclass(frozen=True)
class BoundingExtent:
    """
    Componentwise bounds of a geometry array.

    Attributes:
        bbl: Minimum corner, shape (D,), dtype float64.
        ufr: Maximum corner, shape (D,), dtype float64.
    """
    bbl: torch.Tensor  # shape (D,)
    ufr: torch.Tensor  # shape (D,)

    def __post_init__(self):
        bbl = torch.as_tensor(self.bbl, dtype=torch.float64).reshape(-1)
        ufr = torch.as_tensor(self.ufr, dtype=torch.float64).reshape(-1)
        if bbl.shape != ufr.shape:
            raise CodecError(
                f"Extent corners differ in arity: {bbl.numel()} != {ufr.numel()}"
            )
        if not (torch.isfinite(bbl).all() and torch.isfinite(ufr).all()):
            raise CodecError("Extent corners must be finite")
        if (bbl > ufr).any():
            raise CodecError(
                f"Extent corners are inverted: bbl={bbl.tolist()} ufr={ufr.tolist()}"
            )
        # frozen dataclass: bypass __setattr__ to store the canonical tensors
        object.__setattr__(self, "bbl", bbl)
        object.__setattr__(self, "ufr", ufr)

    @classmethod
    def of(cls, bbl: Sequence[float], ufr: Sequence[float]) -> Self:
        """Build an extent from two plain sequences."""
        return cls(bbl=torch.tensor(bbl, dtype=torch.float64), ufr=torch.tensor(ufr, dtype=torch.float64))

    @property
    def arity(self) -> int:
        return self.bbl.numel()

    @property
    def size(self) -> torch.Tensor:
        """Length of the extent along each component."""
        return self.ufr - self.bbl

    def is_degenerate(self) -> torch.Tensor:
        """Boolean mask of the components where ``bbl == ufr``."""
        return self.bbl == self.ufr

    def to_float32(self) -> Self:
        """
        Round the corners outward to float32.

        The persisted extent is stored as float32, so the encoder rounds it
        the same way before deriving the precision step. ``bbl`` is rounded
        down and ``ufr`` up, so the rounded extent still encloses the original.
        Degenerate components are rounded to the nearest float32 on both
        corners and keep a step of 0.
        """
        bbl = self.bbl.numpy()
        ufr = self.ufr.numpy()
        bbl32 = bbl.astype(np.float32)
        ufr32 = ufr.astype(np.float32)
        degenerate = self.is_degenerate().numpy()
        bbl32 = np.where(bbl32 > bbl, np.nextafter(bbl32, np.float32(-np.inf)), bbl32)
        ufr32 = np.where(ufr32 < ufr, np.nextafter(ufr32, np.float32(np.inf)), ufr32)
        nearest = ufr.astype(np.float32)
        bbl32 = np.where(degenerate, nearest, bbl32)
        ufr32 = np.where(degenerate, nearest, ufr32)
        return type(self)(
            bbl=torch.from_numpy(bbl32.astype(np.float64)),
            ufr=torch.from_numpy(ufr32.astype(np.float64)),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundingExtent):
            return NotImplemented
        return torch.equal(self.bbl, other.bbl) and torch.equal(self.ufr, other.ufr)

    def __hash__(self) -> int:
        return hash((tuple(self.bbl.tolist()), tuple(self.ufr.tolist())))


def compute_extent(values) -> BoundingExtent:
    """
    Compute the componentwise minimum and maximum of an array.

    Args:
        values: Array of vectors, shape (N, D). Not modified.

    Returns:
        The BoundingExtent enclosing every vector.

    Raises:
        CodecError: If the array is empty.
    """
    values = torch.as_tensor(values)
    if values.ndim != 2 or values.shape[0] == 0:
        raise CodecError(
            f"Need a non-empty (N, D) array to compute an extent, got shape {tuple(values.shape)}"
        )
    values = values.to(torch.float64)
    return BoundingExtent(bbl=values.min(dim=0).values, ufr=values.max(dim=0).values)
