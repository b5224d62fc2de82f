from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from image_converter.codec import ChannelLayout, decode_heic_primary, render_pdf_first_page
from image_converter.codec import decoder as decoder_mod
from image_converter.errors import DecodeFailure, EmptyDocument


def test_render_scale_fits_the_render_box():
    assert decoder_mod._render_scale(400, 300) == pytest.approx(2.0)
    assert decoder_mod._render_scale(1600, 600) == pytest.approx(0.5)
    assert decoder_mod._render_scale(612, 792) == pytest.approx(600 / 792)
    assert decoder_mod._render_scale(0, 100) == 0.0


def test_pdf_first_page_is_fitted_into_800x600(make_pdf):
    buf = render_pdf_first_page(make_pdf(pages=[(400, 300)]))
    assert (buf.width, buf.height) == (800, 600)
    assert buf.layout is ChannelLayout.RGB8
    # Page background renders white
    assert buf.pixels[-1, -1].tolist() == [255, 255, 255]


def test_pdf_only_first_page_is_rendered(make_pdf):
    buf = render_pdf_first_page(make_pdf(pages=[(200, 200), (800, 100)]))
    assert (buf.width, buf.height) == (600, 600)


def test_pdf_garbage_is_decode_failure(tmp_path: Path):
    pytest.importorskip("pymupdf")
    path = tmp_path / "fake.pdf"
    path.write_bytes(b"definitely not a pdf")
    with pytest.raises(DecodeFailure):
        render_pdf_first_page(path)


def test_pdf_without_pages_is_empty_document(make_empty_pdf):
    with pytest.raises(EmptyDocument):
        render_pdf_first_page(make_empty_pdf())


def test_heic_primary_image_is_decoded(make_heic):
    buf = decode_heic_primary(make_heic(width=32, height=24))
    assert (buf.width, buf.height) == (32, 24)
    assert buf.layout is ChannelLayout.RGB8
    assert buf.pixels.dtype == np.uint8


def test_heic_garbage_is_decode_failure(tmp_path: Path):
    pytest.importorskip("pillow_heif")
    path = tmp_path / "fake.heic"
    path.write_bytes(b"\x00\x00\x00\x18ftypheic" + b"\x00" * 32)
    with pytest.raises(DecodeFailure):
        decode_heic_primary(path)
