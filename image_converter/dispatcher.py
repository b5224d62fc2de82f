"""Conversion dispatch.

`convert()` validates a request against the conversion table, picks the codec
adapter for the (source, target) pair, and writes the encoded bytes to the
destination through a temporary file so a failure never leaves a truncated
output behind. No Qt dependencies.
"""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from .codec import (
    PixelBuffer,
    decode_heic_primary,
    decode_raster,
    decode_raster_strict,
    encode_jpeg,
    encode_png,
    encode_webp,
    render_pdf_first_page,
)
from .errors import ConversionError, IOFailure, UnsupportedConversion
from .formats import ImageFormat, detect_format, is_supported
from .logger import get_logger

_logger = get_logger("dispatcher")

Decoder = Callable[[Path], PixelBuffer]
Encoder = Callable[[PixelBuffer], bytes]


@dataclass(frozen=True)
class CodecAdapter:
    decode: Decoder
    encode: Encoder


_F = ImageFormat

# One adapter per entry of SUPPORTED_CONVERSIONS
ADAPTERS: Mapping[tuple[ImageFormat, ImageFormat], CodecAdapter] = MappingProxyType(
    {
        (_F.JPEG, _F.WEBP): CodecAdapter(decode_raster, encode_webp),
        (_F.JPEG, _F.PNG): CodecAdapter(decode_raster, encode_png),
        (_F.PNG, _F.JPEG): CodecAdapter(decode_raster, encode_jpeg),
        (_F.PNG, _F.WEBP): CodecAdapter(decode_raster, encode_webp),
        (_F.WEBP, _F.JPEG): CodecAdapter(decode_raster, encode_jpeg),
        (_F.WEBP, _F.PNG): CodecAdapter(decode_raster_strict, encode_png),
        (_F.PDF, _F.JPEG): CodecAdapter(render_pdf_first_page, encode_jpeg),
        (_F.PDF, _F.PNG): CodecAdapter(render_pdf_first_page, encode_png),
        (_F.PDF, _F.WEBP): CodecAdapter(render_pdf_first_page, encode_webp),
        (_F.HEIC, _F.JPEG): CodecAdapter(decode_heic_primary, encode_jpeg),
        (_F.HEIC, _F.PNG): CodecAdapter(decode_heic_primary, encode_png),
        (_F.HEIC, _F.WEBP): CodecAdapter(decode_heic_primary, encode_webp),
    }
)


@dataclass(frozen=True)
class ConversionRequest:
    input_path: Path
    output_path: Path
    source_format: ImageFormat
    target_format: ImageFormat

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_path", Path(self.output_path))

    @classmethod
    def for_paths(cls, input_path: str | Path, output_path: str | Path, target: ImageFormat) -> ConversionRequest:
        """Build a request, inferring the source format from the input extension.

        Raises:
            UnsupportedConversion: if the extension is not recognized
        """
        source = detect_format(input_path)
        if source is None:
            raise UnsupportedConversion(f"unrecognized file extension '{Path(input_path).suffix}'", input_path)
        return cls(Path(input_path), Path(output_path), source, target)


@dataclass(frozen=True)
class ConversionResult:
    ok: bool
    output_path: Path | None = None
    width: int = 0
    height: int = 0
    error: str | None = None

    @classmethod
    def failure(cls, exc: ConversionError) -> ConversionResult:
        return cls(ok=False, error=str(exc))

    @property
    def message(self) -> str:
        if self.ok:
            return f"Conversion successful: {self.output_path}"
        return f"Error: {self.error}"


def adapter_for(source: ImageFormat, target: ImageFormat) -> CodecAdapter:
    """Adapter for a supported pair.

    Raises:
        UnsupportedConversion: if the pair is not in the conversion table
    """
    if not is_supported(source, target):
        raise UnsupportedConversion(f"{source.label} to {target.label} is not supported")
    return ADAPTERS[(source, target)]


def _check_input(path: Path) -> None:
    if not path.exists():
        raise IOFailure("input file does not exist", path)
    if not path.is_file():
        raise IOFailure("input is not a regular file", path)
    if not os.access(path, os.R_OK):
        raise IOFailure("input file is not readable", path)


def _check_destination(path: Path) -> None:
    folder = path.parent
    if not folder.is_dir():
        raise IOFailure("destination folder does not exist", folder)
    if path.is_dir():
        raise IOFailure("destination is a directory", path)


def _output_mode(path: Path) -> int:
    """Permission bits for the output: those of the file being replaced, else 0o666 minus the umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_atomic(path: Path, data: bytes) -> None:
    """Write `data` to `path` via a temporary file in the same folder.

    The temporary file is created private (0600); it gets the final
    permissions just before the rename.

    Raises:
        IOFailure: if the temporary write or the rename fails
    """
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", delete=False, dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        ) as handle:
            tmp_name = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, _output_mode(path))
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        raise IOFailure(f"cannot write output: {e.strerror or e}", path) from e


def convert(request: ConversionRequest) -> ConversionResult:
    """Run one conversion.

    Raises:
        UnsupportedConversion: pair not in the table (raised before any I/O)
        IOFailure: missing/unreadable input, missing destination folder, write error
        DecodeFailure: the source codec rejected the input
        EmptyDocument: PDF without pages
        EncodeFailure: the target codec could not serialize the image
    """
    adapter = adapter_for(request.source_format, request.target_format)
    src, dst = request.input_path, request.output_path
    _logger.debug(
        "convert %s (%s) -> %s (%s)", src, request.source_format.label, dst, request.target_format.label
    )

    _check_input(src)
    _check_destination(dst)

    try:
        buffer = adapter.decode(src)
        data = adapter.encode(buffer)
    except OSError as e:
        raise IOFailure(f"cannot read input: {e.strerror or e}", src) from e

    write_atomic(dst, data)
    _logger.debug("wrote %s (%d bytes)", dst, len(data))
    return ConversionResult(ok=True, output_path=dst, width=buffer.width, height=buffer.height)


def run_conversion(request: ConversionRequest) -> ConversionResult:
    """Like `convert`, but report a failure as a result instead of raising."""
    try:
        return convert(request)
    except ConversionError as e:
        _logger.debug("conversion failed: %s", e)
        return ConversionResult.failure(e)
