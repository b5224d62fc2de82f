"""Decoders: file on disk -> `PixelBuffer`.

Raster formats (JPEG, PNG, WebP) are decoded with pyvips, the first page of a
PDF is rendered with PyMuPDF and the primary image of a HEIC container is
decoded with pillow-heif. Every decoder reports failures as `DecodeFailure`
(or `EmptyDocument` for page-less PDFs) with the codec error chained.
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any

import numpy as np

from image_converter.errors import DecodeFailure, EmptyDocument
from image_converter.logger import get_logger

from .pixel_buffer import ChannelLayout, PixelBuffer

_logger = get_logger("decoder")

# Target box for rendering a PDF page (aspect ratio is preserved)
PDF_RENDER_WIDTH = 800
PDF_RENDER_HEIGHT = 600

_GRAY_BANDS = 1
_GRAY_ALPHA_BANDS = 2
_RGB_BANDS = 3
_RGBA_BANDS = 4

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Configure pyvips caches to avoid memory growth
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
            pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def _get_pymupdf_module() -> Any:
    import pymupdf

    return pymupdf


def _get_heif_module() -> Any:
    import pillow_heif

    return pillow_heif


# --- raster (pyvips) ---------------------------------------------------------


def _normalize_bands(image: Any) -> Any:
    """Bring a vips image to 8-bit sRGB with 3 or 4 bands."""
    pyvips = _get_pyvips_module()

    # Handles grayscale, CMYK, 16-bit and LAB inputs; fails harmlessly on plain multiband
    with contextlib.suppress(pyvips.Error):
        image = image.colourspace("srgb")
    if image.format != "uchar":
        image = image.cast("uchar")

    if image.bands == _GRAY_BANDS:
        image = pyvips.Image.bandjoin([image, image, image])
    elif image.bands == _GRAY_ALPHA_BANDS:
        gray = image.extract_band(0)
        image = pyvips.Image.bandjoin([gray, gray, gray, image.extract_band(1)])
    elif image.bands > _RGBA_BANDS:
        image = image.extract_band(0, n=_RGBA_BANDS)
    return image


def _first_line(exc: Exception) -> str:
    # vips errors carry the whole libvips error log
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else ""


def _vips_to_buffer(image: Any) -> PixelBuffer:
    mem = image.write_to_memory()
    return PixelBuffer.from_bytes(image.width, image.height, ChannelLayout.for_channels(image.bands), mem)


def _load_vips(path: Path) -> Any:
    pyvips = _get_pyvips_module()
    try:
        image = pyvips.Image.new_from_file(str(path), access="sequential")
        # Force the decode now so codec errors surface here
        return image.copy_memory()
    except pyvips.Error as e:
        _logger.debug("vips decode failed for %s: %s", path, e)
        raise DecodeFailure(_first_line(e) or "unreadable image", path) from e


def decode_raster(path: str | Path) -> PixelBuffer:
    """Decode a JPEG, PNG or WebP file, normalizing to RGB8 or RGBA8."""
    path = Path(path)
    image = _load_vips(path)
    pyvips = _get_pyvips_module()
    try:
        image = _normalize_bands(image)
        buffer = _vips_to_buffer(image)
    except (pyvips.Error, ValueError) as e:
        raise DecodeFailure(f"unsupported pixel layout: {e}", path) from e
    _logger.debug("decoded %s: %dx%d %s", path.name, buffer.width, buffer.height, buffer.layout.name)
    return buffer


def decode_raster_strict(path: str | Path) -> PixelBuffer:
    """Decode a raster file, accepting only 8-bit RGB or RGBA pixels as decoded."""
    path = Path(path)
    image = _load_vips(path)
    if image.format != "uchar" or image.bands not in (_RGB_BANDS, _RGBA_BANDS):
        raise DecodeFailure(f"unsupported pixel layout: {image.bands} band(s) of {image.format}", path)
    buffer = _vips_to_buffer(image)
    _logger.debug("decoded %s: %dx%d %s", path.name, buffer.width, buffer.height, buffer.layout.name)
    return buffer


# --- PDF (PyMuPDF) -----------------------------------------------------------


def _render_scale(page_width: float, page_height: float) -> float:
    """Zoom factor that fits a page into the PDF render box."""
    if page_width <= 0 or page_height <= 0:
        return 0.0
    return min(PDF_RENDER_WIDTH / page_width, PDF_RENDER_HEIGHT / page_height)


def render_pdf_first_page(path: str | Path) -> PixelBuffer:
    """Render page 1 of a PDF into an RGB8 buffer fitted into 800x600."""
    path = Path(path)
    pymupdf = _get_pymupdf_module()
    try:
        doc = pymupdf.open(str(path), filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise DecodeFailure(f"cannot open PDF: {e}", path) from e

    with doc:
        if doc.page_count == 0:
            raise EmptyDocument("no pages found in the PDF document", path)
        page = doc[0]
        zoom = _render_scale(page.rect.width, page.rect.height)
        if zoom <= 0:
            raise DecodeFailure("first page has no area", path)
        try:
            pix = page.get_pixmap(matrix=pymupdf.Matrix(zoom, zoom), alpha=False)
        except (RuntimeError, ValueError) as e:
            raise DecodeFailure(f"cannot render first page: {e}", path) from e

    if pix.width == 0 or pix.height == 0:
        raise DecodeFailure("rendered page is empty", path)
    if pix.n != _RGB_BANDS:
        pix = pymupdf.Pixmap(pymupdf.csRGB, pix)

    rows = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.stride)
    pixels = rows[:, : pix.width * _RGB_BANDS].reshape(pix.height, pix.width, _RGB_BANDS)
    _logger.debug("rendered %s page 1 at zoom %.3f: %dx%d", path.name, zoom, pix.width, pix.height)
    return PixelBuffer.from_array(pixels.copy())


# --- HEIC (pillow-heif) ------------------------------------------------------


def decode_heic_primary(path: str | Path) -> PixelBuffer:
    """Decode the primary image of a HEIC container (no thumbnails or depth images)."""
    path = Path(path)
    pillow_heif = _get_heif_module()
    try:
        heif_file = pillow_heif.open_heif(str(path), convert_hdr_to_8bit=True)
        primary = heif_file[heif_file.primary_index]
        mode = primary.mode
        pixels = np.asarray(primary)
    except (ValueError, RuntimeError, OSError) as e:
        raise DecodeFailure(f"cannot decode HEIC: {e}", path) from e

    if mode not in ("RGB", "RGBA") or pixels.dtype != np.uint8:
        raise DecodeFailure(f"unsupported HEIC pixel mode {mode}", path)
    try:
        buffer = PixelBuffer.from_array(pixels)
    except ValueError as e:
        raise DecodeFailure(str(e), path) from e
    _logger.debug("decoded %s primary image: %dx%d %s", path.name, buffer.width, buffer.height, buffer.layout.name)
    return buffer
