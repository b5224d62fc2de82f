"""Encoders: `PixelBuffer` -> encoded file bytes, via pyvips.

JPEG has no alpha channel, so its encoder flattens to RGB8 first; PNG and WebP
encoders always expand to RGBA8.
"""

from __future__ import annotations

from typing import Any

from image_converter.errors import EncodeFailure
from image_converter.logger import get_logger

from .decoder import _get_pyvips_module
from .pixel_buffer import ChannelLayout, PixelBuffer

_logger = get_logger("encoder")

JPEG_QUALITY = 80


def _to_vips(buffer: PixelBuffer) -> Any:
    pyvips = _get_pyvips_module()
    image = pyvips.Image.new_from_memory(buffer.tobytes(), buffer.width, buffer.height, buffer.channels, "uchar")
    return image.copy(interpretation="srgb")


def _encode(buffer: PixelBuffer, layout: ChannelLayout, suffix: str, **options: Any) -> bytes:
    pyvips = _get_pyvips_module()
    buffer = buffer.to_layout(layout)
    try:
        data = _to_vips(buffer).write_to_buffer(suffix, **options)
    except pyvips.Error as e:
        raise EncodeFailure(f"{suffix} encoder failed: {e}") from e
    if not data:
        raise EncodeFailure(f"{suffix} encoder produced no data")
    _logger.debug("encoded %dx%d %s as %s: %d bytes", buffer.width, buffer.height, layout.name, suffix, len(data))
    return bytes(data)


def encode_jpeg(buffer: PixelBuffer) -> bytes:
    """Baseline JPEG at quality 80, alpha flattened."""
    return _encode(buffer, ChannelLayout.RGB8, ".jpg", Q=JPEG_QUALITY, interlace=False)


def encode_png(buffer: PixelBuffer) -> bytes:
    """8-bit RGBA PNG with the codec's default compression."""
    return _encode(buffer, ChannelLayout.RGBA8, ".png")


def encode_webp(buffer: PixelBuffer) -> bytes:
    """Lossless RGBA WebP, keeping colour values under fully transparent pixels."""
    return _encode(buffer, ChannelLayout.RGBA8, ".webp", lossless=True, exact=True)
