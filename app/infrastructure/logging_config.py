"""Logging setup shared by the API process and the helper scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
    # Uvicorn installs its own handlers; keep its access log at the same level.
    logging.getLogger("uvicorn.access").setLevel(level)


__all__ = ["configure_logging"]
