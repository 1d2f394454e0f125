#!/usr/bin/env python3
"""Print hierarchy counts, LGAs per state and remaining orphaned references.

Read-only; nothing is modified. Usage:
  python scripts/60_reports_analysis/report_hierarchy_counts.py [--db-url URL] [--json reports/hierarchy.json]
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.session import reconfigure  # noqa: E402
import db.session as db_session  # noqa: E402
from hierarchy.cli import configure_logging  # noqa: E402
from hierarchy.config import load_config  # noqa: E402
from hierarchy.engine import check_store  # noqa: E402
from hierarchy.report import Validator  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Report admin hierarchy counts and orphans")
    ap.add_argument("--db-url", help="Override database URL (default: $ADMINREC_DB_URL)")
    ap.add_argument("--config", help="Settings file with expected_counts")
    ap.add_argument("--json", dest="json_path", help="Also write the report as JSON")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    configure_logging()
    if args.db_url:
        os.environ["ADMINREC_DB_URL"] = args.db_url
        reconfigure(args.db_url)
    config = load_config(args.config)
    with db_session.get_session() as session:
        print("Effective DB_URL:", db_session.DB_URL)
        check_store(session)
        report = Validator(session).validate(config.expected_counts)
    if args.json_path:
        out = Path(args.json_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        print(f"Wrote report: {out}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
