"""
Errors raised by the geometry array codec.

Only structural problems are errors. Lossy numeric behaviour (rounding,
clamping, degenerate extents) never raises.
"""


class CodecError(ValueError):
    """Base class for all codec errors."""
    pass


class InvalidWidth(CodecError):
    """Byte width outside [1, 4]."""
    pass


class ModeRequiresTopology(CodecError):
    """Prediction requested without a non-empty strip topology."""
    pass


class InvalidTopology(CodecError):
    """A strip shorter than 3 indices, or an index out of bounds."""
    pass


class SizeMismatch(CodecError):
    """
    Payload length disagrees with the recorded element count, with the
    anchor set implied by the topology, or with the array kind's arity.
    """
    pass
