"""Pytest configuration.

The GUI tests use PySide6 widgets. We force the offscreen platform and create a
single `QApplication` for the entire session as early as possible.

Source images are generated on the fly with Pillow, PyMuPDF and pillow-heif.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import numpy as np
import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = QApplication([]) if app is None else app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


def gradient(width: int, height: int, alpha: bool = False) -> np.ndarray:
    """Deterministic (H, W, 3|4) uint8 test pattern."""
    ys, xs = np.mgrid[0:height, 0:width]
    channels = [
        (xs * 255 // max(width - 1, 1)).astype(np.uint8),
        (ys * 255 // max(height - 1, 1)).astype(np.uint8),
        ((xs + ys) * 7 % 256).astype(np.uint8),
    ]
    if alpha:
        channels.append(((xs * 31 + ys * 17) % 256).astype(np.uint8))
    return np.dstack(channels)


@pytest.fixture
def make_image(tmp_path: Path):
    """Factory writing a raster fixture with Pillow: make_image("a.png", 16, 12, alpha=True)."""
    from PIL import Image

    def _make(name: str, width: int = 16, height: int = 12, alpha: bool = False) -> Path:
        path = tmp_path / name
        arr = gradient(width, height, alpha)
        img = Image.fromarray(arr)
        suffix = path.suffix.lower()
        if suffix in (".jpg", ".jpeg"):
            img.convert("RGB").save(path, "JPEG", quality=95)
        elif suffix == ".webp":
            img.save(path, "WEBP", lossless=True)
        else:
            img.save(path, "PNG")
        return path

    return _make


@pytest.fixture
def make_pdf(tmp_path: Path):
    """Factory writing a PDF with PyMuPDF: make_pdf("doc.pdf", pages=[(400, 300)])."""
    pymupdf = pytest.importorskip("pymupdf")

    def _make(name: str = "doc.pdf", pages: list[tuple[float, float]] | None = None) -> Path:
        path = tmp_path / name
        doc = pymupdf.open()
        for width, height in pages or [(400, 300)]:
            page = doc.new_page(width=width, height=height)
            page.draw_rect(pymupdf.Rect(20, 20, width / 2, height / 2), color=(1, 0, 0), fill=(0, 0, 1))
            page.insert_text((30, height - 30), "page", fontsize=18)
        doc.save(str(path))
        doc.close()
        return path

    return _make


@pytest.fixture
def make_heic(tmp_path: Path):
    """Factory writing a HEIC file with pillow-heif (skips when no encoder is available)."""
    pillow_heif = pytest.importorskip("pillow_heif")

    def _make(name: str = "photo.heic", width: int = 32, height: int = 24, alpha: bool = False) -> Path:
        path = tmp_path / name
        arr = gradient(width, height, alpha)
        try:
            heif = pillow_heif.from_bytes(mode="RGBA" if alpha else "RGB", size=(width, height), data=arr.tobytes())
            heif.save(str(path), quality=90)
        except Exception as e:
            pytest.skip(f"HEIC encoder not available: {e}")
        return path

    return _make


@pytest.fixture
def pattern():
    """The `gradient` test pattern generator."""
    return gradient


def _zero_page_pdf() -> bytes:
    """A well-formed PDF whose page tree has no kids."""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref)
    return bytes(out)


@pytest.fixture
def make_empty_pdf(tmp_path: Path):
    """Factory writing a PDF with zero pages."""
    pytest.importorskip("pymupdf")

    def _make(name: str = "empty.pdf") -> Path:
        path = tmp_path / name
        path.write_bytes(_zero_page_pdf())
        return path

    return _make
