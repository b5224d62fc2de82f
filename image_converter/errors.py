"""Typed conversion failures.

Every failure a conversion can hit is one of the five subclasses of
`ConversionError`. Codec exceptions are chained as ``__cause__``.
"""

from __future__ import annotations

from pathlib import Path


class ConversionError(Exception):
    """Base class for all conversion failures."""

    kind = "Conversion failed"

    def __init__(self, message: str, path: str | Path | None = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.kind}: {self.message} ({self.path})"
        return f"{self.kind}: {self.message}"


class UnsupportedConversion(ConversionError):
    """The (source, target) pair is not in the conversion table."""

    kind = "Unsupported conversion"


class DecodeFailure(ConversionError):
    """The codec rejected the input bytes."""

    kind = "Decode failed"


class EncodeFailure(ConversionError):
    """The codec could not serialize the pixel buffer."""

    kind = "Encode failed"


class EmptyDocument(ConversionError):
    """A PDF source has no pages."""

    kind = "Empty document"


class IOFailure(ConversionError):
    """Reading the input or writing the output failed."""

    kind = "I/O error"
