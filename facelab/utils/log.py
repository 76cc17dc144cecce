"""Logging setup shared by the package and the CLI."""

import logging
import os

logging.basicConfig(
    level=os.environ.get("FACELAB_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def get_logger(name):
    """Module logger under the root configuration above."""
    return logging.getLogger(name)


def set_level(level) -> None:
    """Change the level of every `facelab` logger (e.g. from a --verbose flag)."""
    logging.getLogger("facelab").setLevel(level)
