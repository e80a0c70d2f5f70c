"""Exceptions raised by the decomposition core."""


class QuadArtError(Exception):
    """Base class for all quadart errors."""


class InvalidRegionError(QuadArtError, ValueError):
    """A region with zero or negative size, or one outside the pixel buffer."""


class EngineStateError(QuadArtError, RuntimeError):
    """An engine operation was requested before an image was loaded."""
