from __future__ import annotations

import os
from pathlib import Path

import pytest

pytest.importorskip("pyvips")
from PIL import Image

from image_converter.main import _apply_cli_logging_options, run


def test_list_prints_conversion_table(capsys):
    assert run(["image-converter", "--list"]) == 0
    out = capsys.readouterr().out
    assert "PDF   -> JPEG, PNG, WebP" in out
    assert "JPEG  -> WebP, PNG" in out


def test_headless_conversion_next_to_input(make_image, capsys):
    src = make_image("shot.png", 12, 7)
    assert run(["image-converter", str(src), "--to", "jpg"]) == 0
    out_file = src.with_suffix(".jpg")
    with Image.open(out_file) as img:
        assert img.format == "JPEG"
        assert img.size == (12, 7)
    assert "Conversion successful" in capsys.readouterr().out


def test_headless_conversion_to_explicit_file_and_folder(make_image, tmp_path: Path):
    src = make_image("shot.webp", 5, 5)
    explicit = tmp_path / "renamed.png"
    assert run(["image-converter", str(src), "--to", "png", "-o", str(explicit)]) == 0
    assert explicit.is_file()

    folder = tmp_path / "dest"
    folder.mkdir()
    assert run(["image-converter", str(src), "--to", "jpeg", "--output", str(folder)]) == 0
    assert (folder / "shot.jpg").is_file()


def test_headless_failures_return_nonzero(make_image, tmp_path: Path, capsys):
    assert run(["image-converter", str(tmp_path / "missing.png"), "--to", "webp"]) == 1
    assert "Error:" in capsys.readouterr().err

    src = make_image("a.png")
    assert run(["image-converter", str(src), "--to", "png"]) == 1
    assert "Unsupported conversion" in capsys.readouterr().err

    assert run(["image-converter", str(src), "--to", "tiff"]) == 2
    assert run(["image-converter", str(tmp_path / "a.gif"), "--to", "png"]) == 1
    assert run(["image-converter", "--to", "png"]) == 2


def test_logging_options_are_moved_to_env(monkeypatch):
    monkeypatch.delenv("IMAGE_CONVERTER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("IMAGE_CONVERTER_LOG_CATS", raising=False)
    remaining = _apply_cli_logging_options(["prog", "--log-level", "debug", "in.png", "--log-cats", "dispatcher"])
    assert remaining == ["prog", "in.png"]
    assert os.environ["IMAGE_CONVERTER_LOG_LEVEL"] == "debug"
    assert os.environ["IMAGE_CONVERTER_LOG_CATS"] == "dispatcher"


def test_headless_mode_rejects_unknown_options(make_image, capsys):
    src = make_image("shot.png", 12, 7)
    with pytest.raises(SystemExit) as exc:
        run(["image-converter", str(src), "--to", "jpg", "--qualty", "5"])
    assert exc.value.code == 2
    assert "--qualty" in capsys.readouterr().err
    assert not src.with_suffix(".jpg").exists()

    with pytest.raises(SystemExit) as exc:
        run(["image-converter", "--list", "--verbose"])
    assert exc.value.code == 2
