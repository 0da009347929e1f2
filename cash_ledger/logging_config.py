"""
Logging setup.

Modules log through logging.getLogger(__name__); this module
only installs the root handler once at application start.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQL echo is controlled by DEBUG, not by the application log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
