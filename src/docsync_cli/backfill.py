from __future__ import annotations

import argparse
import logging
from pathlib import Path

from docsync.config import Settings
from docsync.logging import setup_logging
from docsync.ledger import Ledger


DEFAULT_PATTERN = r"^https://oip\.nypdonline\.org/files/[^/]+\.pdf$"
DEFAULT_OLD_PREFIX = "https://oip.nypdonline.org/"
DEFAULT_NEW_PREFIX = "https://nypdonline.org/"


def main() -> None:
    """Record a renamed host's spelling of already-ingested URLs as alternates.

    Run once after an upstream moves its documents, so the next sync does not
    ingest them a second time under the new host.
    """
    parser = argparse.ArgumentParser(description="Backfill alternate URLs onto existing ledger records.")
    parser.add_argument("--ledger", type=Path, default=None, help="Path to the ledger JSON")
    parser.add_argument("--pattern", default=DEFAULT_PATTERN, help="Regex a source_url must match")
    parser.add_argument("--old-prefix", default=DEFAULT_OLD_PREFIX)
    parser.add_argument("--new-prefix", default=DEFAULT_NEW_PREFIX)
    args = parser.parse_args()

    settings = Settings()
    setup_logging(settings.log_level)
    log = logging.getLogger(__name__)

    ledger = Ledger.load(args.ledger or Path(settings.ledger_path))
    changed = ledger.backfill_alternates(args.pattern, args.old_prefix, args.new_prefix)
    log.info("Added alternate URLs to %d records", changed)
    if changed:
        ledger.save()
