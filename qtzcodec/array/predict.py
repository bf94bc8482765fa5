"""
Parallelogram prediction along triangle strips.

Each non-anchor element of a strip is predicted from the three elements that
precede it in the strip, and only the quantized residual is stored. The
encoder predicts from the source values of the window, the decoder from the
values it has already decoded.
"""

from collections import deque
from typing import Deque, Iterator, List, Tuple

import torch

from .quant import clamp_codes, quantize, unquantize
from .topology import ANCHORS_PER_STRIP, StripTopology


def parallelogram_prediction(window) -> torch.Tensor:
    """
    Predict the next strip element from the last three, oldest first.

    Applies the formula:
        predicted = w0 + w2 - w1
    """
    return window[0] + window[2] - window[1]


def _strip_walk(topology: StripTopology, known: List[bool]) -> Iterator[Tuple[int, Deque[int]]]:
    """
    Yield each element to predict together with the indices of its window.

    On decode the caller must have reconstructed the yielded element before
    resuming the iterator. Anchors and elements handled by an earlier strip
    are not yielded again; they only enter the window.
    """
    for strip in topology.strips():
        window: Deque[int] = deque(maxlen=ANCHORS_PER_STRIP)
        for index in strip:
            if not known[index]:
                yield index, window
                known[index] = True
            window.append(index)


def predict_parallelogram(
    values: torch.Tensor,
    topology: StripTopology,
    anchor_mask: torch.Tensor,
    step: torch.Tensor,
    width: int,
) -> Tuple[torch.Tensor, torch.Tensor, int]:
    """
    Replace strip elements by quantized parallelogram residuals.

    Args:
        values: Source values, shape (N, D), dtype float64.
        topology: Strips giving the prediction order.
        anchor_mask: Anchors of ``topology``, shape (N,).
        step: Precision step, shape (D,).
        width: Bytes per code.

    Returns:
        A tuple of (codes, predicted_mask, clamped):
        - codes: Residual codes, shape (N, D), dtype int64; zero where not predicted.
        - predicted_mask: Elements that were encoded as residuals, shape (N,).
        - clamped: Number of residual components clamped to the code range.
    """
    count, dim = values.shape
    zero = torch.zeros(dim, dtype=torch.float64)
    codes = torch.zeros((count, dim), dtype=torch.int64)
    known = anchor_mask.tolist()
    predicted_mask = torch.zeros(count, dtype=torch.bool)
    clamped = 0

    for index, window in _strip_walk(topology, known):
        predicted = parallelogram_prediction([values[i] for i in window])
        code, out_of_range = clamp_codes(quantize(values[index] - predicted, step, zero), width)
        clamped += out_of_range
        codes[index] = code
        predicted_mask[index] = True

    return codes, predicted_mask, clamped


def unpredict_parallelogram(
    codes: torch.Tensor,
    reconstructed: torch.Tensor,
    topology: StripTopology,
    anchor_mask: torch.Tensor,
    step: torch.Tensor,
) -> torch.Tensor:
    """
    Rebuild strip elements from their residual codes.

    Args:
        codes: Residual codes, shape (N, D); only predicted rows are read.
        reconstructed: Values with the anchors filled in, shape (N, D),
            dtype float64. Updated in place.
        topology: The same strips used to encode.
        anchor_mask: Anchors of ``topology``, shape (N,).
        step: Precision step, shape (D,).

    Returns:
        Mask of the elements rebuilt from residuals, shape (N,).
    """
    count, dim = reconstructed.shape
    zero = torch.zeros(dim, dtype=torch.float64)
    known = anchor_mask.tolist()
    predicted_mask = torch.zeros(count, dtype=torch.bool)

    for index, window in _strip_walk(topology, known):
        predicted = parallelogram_prediction([reconstructed[i] for i in window])
        reconstructed[index] = predicted + unquantize(codes[index], step, zero)
        predicted_mask[index] = True

    return predicted_mask
