"""Path normalization utilities.

- Use absolute paths when interacting with the filesystem/UI.
- Derive output file names from the input name and the target format.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from pathlib import Path

from .formats import OUTPUT_SUFFIXES, ImageFormat

_DRIVE_PREFIX_LEN = 2


def _normalize_drive_letter(path_str: str) -> str:
    # Normalize drive letter casing on Windows ("c:\\" -> "C:\\").
    if len(path_str) >= _DRIVE_PREFIX_LEN and path_str[1] == ":":
        return path_str[0].upper() + path_str[1:]
    return path_str


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    return _normalize_drive_letter(str(abs_path(path)))


def abs_dir(path: str | Path) -> Path:
    """Absolute directory path.

    If the path exists and is not a directory, returns its parent.
    """
    p = abs_path(path)
    if p.exists() and not p.is_dir():
        return p.parent
    return p


def abs_dir_str(path: str | Path) -> str:
    return _normalize_drive_letter(str(abs_dir(path)))


def output_path_for(input_path: str | Path, target: ImageFormat, output_dir: str | Path | None = None) -> Path:
    """Destination file for converting `input_path` to `target`.

    The file is named after the input stem with the target suffix and placed in
    `output_dir`, or next to the input when no folder is given.

    Raises:
        ValueError: if `target` is not an output format
    """
    try:
        suffix = OUTPUT_SUFFIXES[target]
    except KeyError:
        raise ValueError(f"{target.label} is not an output format") from None
    src = abs_path(input_path)
    folder = abs_path(output_dir) if output_dir else src.parent
    return folder / f"{src.stem}{suffix}"
