"""Console entry points.

    reconcile-admin-boundaries [--db-url URL] [--source XLSX] [--config YAML] [--report-json PATH]
    seed-admin-divisions PATH [--db-url URL] [--config YAML]
    sweep-admin-orphans [--db-url URL] [--config YAML] [--report-json PATH]

Structural failures (unreadable source, unreachable store) propagate and exit
non-zero; per-record anomalies are logged and the run still exits 0.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from db.session import get_session, reconfigure

from .config import load_config
from .engine import ReconciliationEngine, RunResult, check_store, sweep_and_validate
from .seed import DivisionSeeder, load_divisions
from .source import read_workbook


class _TaggedFormatter(logging.Formatter):
    """Plain message lines, tagged [warn]/[error] above INFO."""

    TAGS = {logging.WARNING: "[warn] ", logging.ERROR: "[error] ", logging.CRITICAL: "[error] "}

    def format(self, record: logging.LogRecord) -> str:
        return self.TAGS.get(record.levelno, "") + super().format(record)


def configure_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_TaggedFormatter("%(message)s"))
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def _common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--db-url", help="Override database URL (default: $ADMINREC_DB_URL or sqlite:///./data/admin_hierarchy.db)")
    ap.add_argument("--config", help="Settings file (default: $ADMINREC_CONFIG or config/reconcile.yaml)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log merge internals")


def _use_db(db_url: Optional[str]) -> None:
    if db_url:
        # get_session() follows the environment, so keep both in step
        os.environ["ADMINREC_DB_URL"] = db_url
        reconfigure(db_url)


def _write_report(path: Optional[str], result: RunResult) -> None:
    if not path:
        return
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    print(f"Wrote report: {out}")


def parse_reconcile_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Reconcile states, LGAs and wards against the boundary workbook")
    _common_args(ap)
    ap.add_argument("--source", help="Boundary workbook (default: $ADMINREC_SOURCE or config source_path)")
    ap.add_argument("--report-json", help="Write the run summary and validation report as JSON")
    return ap.parse_args(argv)


def reconcile_main(argv: Optional[List[str]] = None) -> int:
    args = parse_reconcile_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    _use_db(args.db_url)
    config = load_config(args.config)
    if args.source:
        config = replace(config, source_path=Path(args.source).resolve())

    source = read_workbook(config.source_path, config)
    with get_session() as session:
        result = ReconciliationEngine(session, config).run(source)

    _write_report(args.report_json, result)
    report = result.report
    print(f"Done. changes={result.changes()} anomalies={len(result.anomalies)} ok={report.ok if report else False}")
    return 0


def parse_seed_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Seed states, LGAs and wards from a nested divisions document")
    ap.add_argument("path", help="JSON or YAML divisions document")
    _common_args(ap)
    return ap.parse_args(argv)


def seed_main(argv: Optional[List[str]] = None) -> int:
    args = parse_seed_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    _use_db(args.db_url)
    config = load_config(args.config)
    states = load_divisions(Path(args.path))
    with get_session() as session:
        check_store(session)
        result = DivisionSeeder(session, name_aliases=config.region_name_aliases).seed(states)
    verb = "Skipped" if result.skipped else "Seeded"
    print(f"{verb}: states={result.states} lgas={result.lgas} wards={result.wards}")
    return 0


def parse_sweep_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Remove orphaned LGAs, wards and polling units, then report counts")
    _common_args(ap)
    ap.add_argument("--report-json", help="Write the sweep and validation report as JSON")
    return ap.parse_args(argv)


def sweep_main(argv: Optional[List[str]] = None) -> int:
    args = parse_sweep_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    _use_db(args.db_url)
    config = load_config(args.config)
    with get_session() as session:
        result = sweep_and_validate(session, config)
    _write_report(args.report_json, result)
    print(f"Done. removed={result.sweep.total() if result.sweep else 0} ok={result.report.ok if result.report else False}")
    return 0


if __name__ == "__main__":
    raise SystemExit(reconcile_main(sys.argv[1:]))
