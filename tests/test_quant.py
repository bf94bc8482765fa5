import pytest
import torch

from qtzcodec import BoundingExtent, InvalidWidth
from qtzcodec.array.quant import (
    check_width,
    clamp_codes,
    code_limits,
    precision_step,
    quantize,
    round_half_away,
    unquantize,
)


def test_precision_step_uses_one_sign_bit():
    extent = BoundingExtent.of((0, 0, 0), (1, 1, 0))
    step = precision_step(extent, 2)
    assert step.tolist() == [1 / 32767, 1 / 32767, 0.0]


def test_precision_step_scales_with_extent():
    extent = BoundingExtent.of((-1, 2), (3, 2.5))
    step = precision_step(extent, 1)
    assert torch.allclose(step, torch.tensor([4 / 127, 0.5 / 127], dtype=torch.float64))


def test_round_half_away_from_zero():
    values = torch.tensor([0.5, 1.5, 2.5, -0.5, -1.5, 0.49, -0.49, 3.0], dtype=torch.float64)
    assert round_half_away(values).tolist() == [1, 2, 3, -1, -2, 0, 0, 3]


@pytest.mark.parametrize("width", [1, 2, 3, 4])
def test_round_trip_error_is_at_most_half_a_step(width):
    generator = torch.Generator().manual_seed(width)
    extent = BoundingExtent.of((-2, -1, 0.5), (3, 4, 0.75))
    values = extent.bbl + torch.rand((500, 3), generator=generator, dtype=torch.float64) * extent.size
    step = precision_step(extent, width)

    codes = quantize(values, step, extent.bbl)
    restored = unquantize(codes, step, extent.bbl)

    lo, hi = code_limits(width)
    assert codes.min() >= 0 and codes.max() <= hi
    assert ((restored - values).abs() <= step / 2 * (1 + 1e-9) + 1e-15).all()


@pytest.mark.parametrize("width", [1, 2, 3, 4])
def test_degenerate_extent_quantizes_to_zero(width):
    extent = BoundingExtent.of((1.5, -2.0), (1.5, -2.0))
    step = precision_step(extent, width)
    assert step.tolist() == [0.0, 0.0]

    codes = quantize(torch.tensor([[1.5, -2.0], [7.0, 9.0]]), step, extent.bbl)
    assert codes.tolist() == [[0, 0], [0, 0]]
    assert torch.equal(unquantize(torch.zeros(2, dtype=torch.int64), step, extent.bbl), extent.bbl)


def test_partially_degenerate_extent():
    extent = BoundingExtent.of((0, 0, 0), (1, 1, 0))
    step = precision_step(extent, 2)
    codes = quantize(torch.tensor([0.0, 1.0, 0.0]), step, extent.bbl)
    assert codes.tolist() == [0, 32767, 0]


@pytest.mark.parametrize("width", [0, 5, -1, 2.0, True, "2"])
def test_invalid_width(width):
    with pytest.raises(InvalidWidth):
        check_width(width)


def test_code_limits():
    assert code_limits(1) == (-128, 127)
    assert code_limits(2) == (-32768, 32767)
    assert code_limits(3) == (-(1 << 23), (1 << 23) - 1)
    assert code_limits(4) == (-(1 << 31), (1 << 31) - 1)


def test_clamp_codes_counts_out_of_range_components():
    codes = torch.tensor([[-200, 0], [127, 300]])
    clamped, out_of_range = clamp_codes(codes, 1)
    assert clamped.tolist() == [[-128, 0], [127, 127]]
    assert out_of_range == 2


def test_residuals_quantize_about_zero():
    step = torch.tensor([0.25, 0.5], dtype=torch.float64)
    zero = torch.zeros(2, dtype=torch.float64)
    codes = quantize(torch.tensor([[-0.5, 1.0], [0.125, -0.25]]), step, zero)
    assert codes.tolist() == [[-2, 2], [1, -1]]
