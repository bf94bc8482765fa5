"""
Scalar quantization of geometry arrays relative to a bounding extent.
"""

from typing import Tuple

import torch

from ..errors import InvalidWidth
from ..extent import BoundingExtent

MIN_WIDTH = 1
MAX_WIDTH = 4


def check_width(width: int) -> int:
    """
    Validate a byte width.

    Raises:
        InvalidWidth: If ``width`` is not an integer in [1, 4].
    """
    if isinstance(width, bool) or not isinstance(width, int) or not MIN_WIDTH <= width <= MAX_WIDTH:
        raise InvalidWidth(f"Width must be an integer in [{MIN_WIDTH}, {MAX_WIDTH}], got {width!r}")
    return width


def code_bits(width: int) -> int:
    """Number of magnitude bits per code; one bit of each width is kept for the sign."""
    return (check_width(width) << 3) - 1


def code_limits(width: int) -> Tuple[int, int]:
    """Smallest and largest code representable as a signed integer of ``width`` bytes."""
    bits = code_bits(width)
    return -(1 << bits), (1 << bits) - 1


def precision_step(extent: BoundingExtent, width: int) -> torch.Tensor:
    """
    Compute the quantization step of each component.

    Applies the formula:
        h = (ufr - bbl) * (1 / (2^bits - 1)),  bits = 8 * width - 1

    A degenerate component (``bbl == ufr``) gets a step of exactly 0.

    Args:
        extent: The bounding extent mapped onto the code range.
        width: Bytes per quantized component, in [1, 4].

    Returns:
        Precision step, shape (D,), dtype float64.
    """
    bits = code_bits(width)
    precision = 1. / ((1 << bits) - 1)
    return (extent.ufr - extent.bbl) * precision


def round_half_away(values: torch.Tensor) -> torch.Tensor:
    """
    Round to nearest, ties away from zero.

    ``torch.round`` rounds ties to even, which would make the encoded code
    depend on the parity of the quotient.
    """
    return torch.sign(values) * torch.floor(values.abs() + 0.5)


def quantize(
    values: torch.Tensor,
    step: torch.Tensor,
    origin: torch.Tensor,
) -> torch.Tensor:
    """
    Quantize values to integer codes.

    Applies the formula:
        code = round((values - origin) / step)

    Components whose step is 0 always quantize to 0.

    Args:
        values: Values to quantize, shape (..., D).
        step: Precision step, shape (D,).
        origin: Value mapped to code 0, shape (D,). ``bbl`` for raw values,
            zero for prediction residuals.

    Returns:
        Integer codes, same shape as ``values``, dtype torch.int64.
    """
    values = torch.as_tensor(values, dtype=torch.float64)
    nonzero = step != 0
    safe_step = torch.where(nonzero, step, torch.ones_like(step))
    normalized = torch.where(nonzero, (values - origin) / safe_step, torch.zeros_like(values))
    return round_half_away(normalized).to(torch.int64)


def unquantize(
    codes: torch.Tensor,
    step: torch.Tensor,
    origin: torch.Tensor,
) -> torch.Tensor:
    """
    Map integer codes back to values.

    Applies the formula:
        values = codes * step + origin

    Returns:
        Reconstructed values, same shape as ``codes``, dtype torch.float64.
    """
    return torch.as_tensor(codes).to(torch.float64) * step + origin


def clamp_codes(codes: torch.Tensor, width: int) -> Tuple[torch.Tensor, int]:
    """
    Clamp codes into the signed range of ``width`` bytes.

    Returns:
        The clamped codes and the number of components that were out of range.
    """
    lo, hi = code_limits(width)
    out_of_range = int(((codes < lo) | (codes > hi)).sum().item())
    return codes.clamp(lo, hi), out_of_range
