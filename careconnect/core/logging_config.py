"""Process-wide logging setup."""

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    resolved = (level or settings.log_level).upper()
    root = logging.getLogger()
    if not any(getattr(handler, "_careconnect", False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._careconnect = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(resolved)
    # SQL echo is controlled by DEBUG through the engine, keep the logger quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.debug else logging.WARNING)
