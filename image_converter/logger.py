import logging
import os
import sys

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _CategoryFilter(logging.Filter):
    def __init__(self, allowed: set[str]):
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        # record.name like: image_converter.dispatcher, image_converter.codec
        suffix = (record.name or "").rsplit(".", 1)[-1]
        return suffix in self.allowed


def setup_logger(level: int = logging.INFO, name: str = "image_converter") -> logging.Logger:
    """Create or update the project logger.

    - Respects env overrides IMAGE_CONVERTER_LOG_LEVEL/IMAGE_CONVERTER_LOG_CATS on every
      call (so late CLI parsing can still take effect).
    - Ensures there is exactly one stderr StreamHandler on the base logger and updates
      its formatter/filters instead of adding another one.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv("IMAGE_CONVERTER_LOG_LEVEL") or "").strip().lower()
    if env_level:
        level = _LEVELS.get(env_level, level)
    logger.setLevel(level)

    stream_handler: logging.StreamHandler | None = None
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "_image_converter_stderr", False):
            stream_handler = h
            break

    if stream_handler is None:
        stream_handler = logging.StreamHandler(stream=sys.stderr)
        stream_handler._image_converter_stderr = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)
    elif stream_handler.stream is not sys.stderr:
        # stderr may have been swapped (pytest capture, GUI launchers); the old
        # stream can already be closed, so no setStream() flush
        stream_handler.stream = sys.stderr

    stream_handler.setFormatter(
        logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    stream_handler.filters.clear()
    cats = (os.getenv("IMAGE_CONVERTER_LOG_CATS") or "").strip()
    if cats:
        allowed = {c.strip() for c in cats.split(",") if c.strip()}
        stream_handler.addFilter(_CategoryFilter(allowed))

    # Do not propagate beyond the project logger
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
