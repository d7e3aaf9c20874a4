from __future__ import annotations

import logging
import os


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that are noisy during a sync run, and the least severe
# level worth keeping from each. pypdf warns on every slightly malformed index
# document; the store validator already reports what matters.
QUIET_LOGGERS = {
    "aiohttp": logging.WARNING,
    "pypdf": logging.ERROR,
}


def setup_logging(default_level: str | None = None, log_file: str | None = None) -> None:
    """Configure root logging for a sync run.

    ``log_file`` (or ``DOCSYNC_LOG_FILE``) additionally appends every record to
    a file, so scheduled runs keep a history next to the ledger.
    """
    level_name = (default_level or os.getenv("DOCSYNC_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    path = log_file or os.getenv("DOCSYNC_LOG_FILE")
    if path:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))
