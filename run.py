#!/usr/bin/env python3
"""
Main entrypoint: start the daily repeat scheduler and the web API.
Run with: python run.py
Or run a single sync now: python run.py --once [--date YYYY-MM-DD] [--dry-run]
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

# Ensure app loggers (sync_service, record_store, repeater.api) emit to the same stream as uvicorn
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)

from config import ConfigError
from config import load as load_config
from date_utils import parse_iso_date

logger = logging.getLogger("run")


def _parse_date(d: Optional[str]):
    try:
        return parse_iso_date(d)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="notion-repeater",
        description="Create today's instances of recurring Notion tasks.",
    )
    p.add_argument("--once", action="store_true", help="Run one sync cycle and exit instead of serving.")
    p.add_argument("--date", type=_parse_date, help="Evaluate as if today were YYYY-MM-DD (with --once).")
    p.add_argument("--dry-run", action="store_true", help="Evaluate only; do not create pages (with --once).")
    return p


def run_once(day, dry_run: bool) -> int:
    from sync_service import build_orchestrator

    try:
        orchestrator = build_orchestrator(load_config())
    except ConfigError as e:
        logger.error("%s", e)
        return 2
    with orchestrator:
        result = orchestrator.run(today=day, dry_run=dry_run)
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0


def serve() -> int:
    from repeat_cron import start_repeat_cron_scheduler, stop_repeat_cron_scheduler

    start_repeat_cron_scheduler()
    import uvicorn

    config = load_config()
    try:
        uvicorn.run(
            "web_app:app",
            host="0.0.0.0",
            port=config.web_ui_port,
            reload=False,
        )
    finally:
        stop_repeat_cron_scheduler()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    if ns.once:
        return run_once(ns.date, ns.dry_run)
    if ns.date or ns.dry_run:
        logger.warning("--date and --dry-run only apply with --once; ignoring")
    return serve()


if __name__ == "__main__":
    sys.exit(main())
