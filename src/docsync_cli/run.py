from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from docsync.config import Settings
from docsync.logging import setup_logging
from docsync.metrics import write_textfile
from docsync.pipeline import run_pipeline
from docsync_cli.config_loader import build_adapters, load_config


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Discover new documents, upload them to the document store and record them in the ledger."
    )
    parser.add_argument("--sources", type=Path, default=None, help="YAML file describing sources and corrections")
    parser.add_argument("--ledger", type=Path, default=None, help="Path to the ledger JSON (default: documents.json)")
    parser.add_argument("--dry-run", action="store_true", help="Do everything except create documents remotely")
    parser.add_argument("--max-new", type=int, default=None, help="Upload at most this many new documents")
    parser.add_argument("--metrics-textfile", type=str, default=None, help="Write Prometheus metrics to this file")
    args = parser.parse_args()

    overrides = {}
    if args.ledger is not None:
        overrides["ledger_path"] = str(args.ledger)
    if args.sources is not None:
        overrides["sources_file"] = str(args.sources)
    if args.dry_run:
        overrides["dry_run"] = True
    if args.max_new is not None:
        overrides["max_new_documents"] = args.max_new
    if args.metrics_textfile:
        overrides["metrics_textfile"] = args.metrics_textfile
    settings = Settings(**overrides)

    setup_logging(settings.log_level, settings.log_file)
    log = logging.getLogger(__name__)

    cfg = load_config(Path(settings.sources_file))
    log.info(
        "Starting run: sources=%d ledger=%s dry_run=%s", len(cfg.sources), settings.ledger_path, settings.dry_run
    )
    status = asyncio.run(run_pipeline(settings, cfg, lambda fetcher: build_adapters(cfg, fetcher)))

    if settings.metrics_textfile:
        write_textfile(settings.metrics_textfile)
    raise SystemExit(int(status))
