#!/usr/bin/env python3
"""Create or upgrade the hierarchy schema to the latest Alembic revision.

Examples:
  python scripts/00_bootstrap/bootstrap_db.py
  python scripts/00_bootstrap/bootstrap_db.py --db-url sqlite:///./data/admin_hierarchy.db
  python scripts/00_bootstrap/bootstrap_db.py --use-metadata   # create_all, no migration history
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.models import Base  # noqa: E402
from db.session import DEFAULT_DB_URL, _normalize_sqlite_url, make_engine  # noqa: E402


def _ensure_sqlite_dir(db_url: str) -> None:
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def _alembic_upgrade(db_url: str) -> None:
    ini_path = PROJECT_ROOT / "alembic.ini"
    cfg = Config(str(ini_path))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    print("Running Alembic upgrade to head...")
    command.upgrade(cfg, "head")
    print("Alembic upgrade complete.")


def _create_with_metadata(db_url: str) -> None:
    print("Creating tables via SQLAlchemy metadata (create_all)...")
    eng = make_engine(db_url)
    Base.metadata.create_all(bind=eng)
    eng.dispose()
    print("Metadata create_all complete.")


def parse_args(argv: list[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Bootstrap/upgrade the admin hierarchy schema")
    ap.add_argument("--db-url", default=os.environ.get("ADMINREC_DB_URL", DEFAULT_DB_URL),
                    help="Target database URL (overrides env var ADMINREC_DB_URL)")
    ap.add_argument("--use-metadata", action="store_true",
                    help="Use SQLAlchemy Base.metadata.create_all instead of Alembic")
    return ap.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    db_url = _normalize_sqlite_url(args.db_url)
    print(f"Target DB URL: {db_url}")
    _ensure_sqlite_dir(db_url)
    if args.use_metadata:
        _create_with_metadata(db_url)
    else:
        _alembic_upgrade(db_url)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
