"""
Error types raised by the die-line engine.

Every error derives from both CartonIQError and ValueError: all of them
describe bad input, and none of them describe a transient condition worth
retrying.
"""


class CartonIQError(Exception):
    """Base class for every error raised by cartoniq."""


class InvalidDimensions(CartonIQError, ValueError):
    """A length, width, height, bleed or thickness is non-positive or non-finite."""


class UnsupportedArchetype(CartonIQError, ValueError):
    """The requested box archetype (or template) is not known."""


class LayoutOverflow(CartonIQError, ValueError):
    """A tab, flap or ear does not fit on the panel edge it is attached to."""


class InvalidColorFormat(CartonIQError, ValueError):
    """A color is not a 6-digit hex string or an RGB channel is out of range."""


class InvalidCostInput(CartonIQError, ValueError):
    """Dimensions or quantity passed to the cost estimator are not positive."""
