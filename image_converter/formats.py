"""Supported formats and the conversion table.

Keep this module free of Qt and codec dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    PDF = "pdf"
    HEIC = "heic"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.WEBP: "WebP",
    ImageFormat.PDF: "PDF",
    ImageFormat.HEIC: "HEIC",
}

EXTENSIONS: Mapping[str, ImageFormat] = MappingProxyType(
    {
        ".jpg": ImageFormat.JPEG,
        ".jpeg": ImageFormat.JPEG,
        ".png": ImageFormat.PNG,
        ".webp": ImageFormat.WEBP,
        ".pdf": ImageFormat.PDF,
        ".heic": ImageFormat.HEIC,
    }
)

# source -> legal targets, in dropdown order
SUPPORTED_CONVERSIONS: Mapping[ImageFormat, tuple[ImageFormat, ...]] = MappingProxyType(
    {
        ImageFormat.JPEG: (ImageFormat.WEBP, ImageFormat.PNG),
        ImageFormat.PNG: (ImageFormat.JPEG, ImageFormat.WEBP),
        ImageFormat.WEBP: (ImageFormat.JPEG, ImageFormat.PNG),
        ImageFormat.PDF: (ImageFormat.JPEG, ImageFormat.PNG, ImageFormat.WEBP),
        ImageFormat.HEIC: (ImageFormat.JPEG, ImageFormat.PNG, ImageFormat.WEBP),
    }
)

OUTPUT_SUFFIXES: Mapping[ImageFormat, str] = MappingProxyType(
    {
        ImageFormat.JPEG: ".jpg",
        ImageFormat.PNG: ".png",
        ImageFormat.WEBP: ".webp",
    }
)


def detect_format(path: str | Path) -> ImageFormat | None:
    """Source format from the file extension (case-insensitive), or None."""
    return EXTENSIONS.get(Path(path).suffix.lower())


def targets_for(source: ImageFormat | None) -> tuple[ImageFormat, ...]:
    if source is None:
        return ()
    return SUPPORTED_CONVERSIONS.get(source, ())


def is_supported(source: ImageFormat, target: ImageFormat) -> bool:
    return target in targets_for(source)


def supported_pairs() -> list[tuple[ImageFormat, ImageFormat]]:
    return [(src, dst) for src, targets in SUPPORTED_CONVERSIONS.items() for dst in targets]


def conversion_label(source: ImageFormat, target: ImageFormat) -> str:
    return f"{source.label} → {target.label}"


def parse_target(value: str) -> ImageFormat:
    """Parse a user-supplied target name ("jpg", "PNG", ".webp", ...).

    Raises:
        ValueError: if the name is not an output format
    """
    key = value.strip().lower().lstrip(".")
    if key == "jpg":
        key = "jpeg"
    try:
        fmt = ImageFormat(key)
    except ValueError:
        raise ValueError(f"unknown format: {value!r}") from None
    if fmt not in OUTPUT_SUFFIXES:
        raise ValueError(f"{fmt.label} is not an output format")
    return fmt


def file_dialog_filter() -> str:
    """Qt file dialog filter for every recognized input extension."""
    patterns = " ".join(f"*{ext}" for ext in EXTENSIONS)
    return f"Images and documents ({patterns});;All files (*)"
