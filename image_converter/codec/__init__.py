"""Codec adapters.

Each supported (source, target) pair maps to one decoder and one encoder.
Decoders return a `PixelBuffer`; encoders return encoded bytes and never touch
the filesystem.
"""

from .decoder import decode_heic_primary, decode_raster, decode_raster_strict, render_pdf_first_page
from .encoder import encode_jpeg, encode_png, encode_webp
from .pixel_buffer import ChannelLayout, PixelBuffer

__all__ = [
    "ChannelLayout",
    "PixelBuffer",
    "decode_heic_primary",
    "decode_raster",
    "decode_raster_strict",
    "encode_jpeg",
    "encode_png",
    "encode_webp",
    "render_pdf_first_page",
]
