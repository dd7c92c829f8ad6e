"""
Exceptions raised by songprint.
"""


class SongprintError(Exception):
    """Base class for all songprint errors."""


class InvalidInputError(SongprintError, ValueError):
    """Input has a shape the algorithm does not accept (e.g. non power-of-two FFT length)."""


class StoreUnavailableError(SongprintError, OSError):
    """The fingerprint store could not be read or written. Safe to retry."""


class AudioDecodeError(SongprintError):
    """An audio file could not be decoded into PCM samples."""
