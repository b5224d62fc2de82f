"""Decoded raster images held as numpy arrays.

A `PixelBuffer` is always 8 bits per channel, either RGB or RGBA. Every
decoder produces one and every encoder consumes one; `to_layout` converts
between the two layouts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

# Implicit opaque background used when alpha is flattened away
FLATTEN_BACKGROUND = (255, 255, 255)
_OPAQUE = 255
_EXPECTED_NDIM = 3


class ChannelLayout(Enum):
    RGB8 = 3
    RGBA8 = 4

    @property
    def channels(self) -> int:
        return self.value

    @classmethod
    def for_channels(cls, channels: int) -> ChannelLayout:
        for layout in cls:
            if layout.channels == channels:
                return layout
        raise ValueError(f"no 8-bit layout with {channels} channels")


@dataclass(frozen=True)
class PixelBuffer:
    width: int
    height: int
    layout: ChannelLayout
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid image size {self.width}x{self.height}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"pixel data must be uint8, got {self.pixels.dtype}")
        expected = (self.height, self.width, self.layout.channels)
        if self.pixels.shape != expected:
            raise ValueError(f"pixel array shape {self.pixels.shape} does not match {expected}")

    @classmethod
    def from_bytes(cls, width: int, height: int, layout: ChannelLayout, data: bytes | memoryview) -> PixelBuffer:
        """Wrap packed, row-major pixel bytes.

        Raises:
            ValueError: if the byte count is not width * height * channels
        """
        expected = width * height * layout.channels
        if len(data) != expected:
            raise ValueError(f"expected {expected} bytes for {width}x{height} {layout.name}, got {len(data)}")
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, layout.channels).copy()
        return cls(width, height, layout, pixels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Wrap an (H, W, 3|4) uint8 array."""
        arr = np.ascontiguousarray(array)
        if arr.ndim != _EXPECTED_NDIM:
            raise ValueError(f"expected an (H, W, C) array, got shape {arr.shape}")
        height, width, channels = arr.shape
        return cls(width, height, ChannelLayout.for_channels(channels), arr)

    @property
    def channels(self) -> int:
        return self.layout.channels

    def tobytes(self) -> bytes:
        return np.ascontiguousarray(self.pixels).tobytes()

    def to_layout(self, layout: ChannelLayout) -> PixelBuffer:
        """Return this image in `layout`.

        RGBA -> RGB composites over an opaque white background; RGB -> RGBA
        pads with fully opaque alpha.
        """
        if layout is self.layout:
            return self
        if layout is ChannelLayout.RGBA8:
            alpha = np.full((self.height, self.width, 1), _OPAQUE, dtype=np.uint8)
            return PixelBuffer(self.width, self.height, layout, np.concatenate([self.pixels, alpha], axis=2))

        rgb = self.pixels[:, :, :3].astype(np.uint16)
        alpha = self.pixels[:, :, 3:4].astype(np.uint16)
        background = np.array(FLATTEN_BACKGROUND, dtype=np.uint16)
        # Integer "over" compositing, rounded to nearest
        flat = (rgb * alpha + background * (_OPAQUE - alpha) + _OPAQUE // 2) // _OPAQUE
        return PixelBuffer(self.width, self.height, layout, flat.astype(np.uint8))

    def to_rgb(self) -> PixelBuffer:
        return self.to_layout(ChannelLayout.RGB8)

    def to_rgba(self) -> PixelBuffer:
        return self.to_layout(ChannelLayout.RGBA8)
