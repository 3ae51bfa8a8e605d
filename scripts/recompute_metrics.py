"""Recompute and store daily metrics snapshots for a date range.

Usage: python scripts/recompute_metrics.py 2024-01-01 2024-01-31
"""
from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from attendance_engine.common.datetime_utils import parse_iso_date
from attendance_engine.container import build_container
from attendance_engine.core.exceptions import DomainError
from attendance_engine.core.policy import EnginePolicy


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("start", help="first date, YYYY-MM-DD")
    parser.add_argument("end", nargs="?", help="last date, YYYY-MM-DD (defaults to start)")
    parser.add_argument("--resolve", action="store_true", help="run the missing punch-out resolver first")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    try:
        start = parse_iso_date(args.start)
        end = parse_iso_date(args.end) if args.end else start
        container = build_container(
            db_config=dict(settings.DB_CONFIG),
            policy=EnginePolicy.from_mapping(getattr(settings, "ENGINE_POLICY", {})),
        )
        if args.resolve:
            print(json.dumps(container.resolver.run(start, end).to_dict()))
        outcome = container.metrics_service.recompute_range(start, end)
    except DomainError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(outcome.to_dict()))
    return 1 if outcome.failed else 0


if __name__ == "__main__":
    sys.exit(main())
