#!/usr/bin/env python3
"""Rebuild states, LGAs and wards from the boundary workbook.

Merges duplicates into their canonical match, creates missing units, renames
drifted spellings, sweeps orphans and prints a validation report. Usage:
  python scripts/30_normalize_match/reconcile_admin_boundaries.py [--source data/nga_admin_boundaries.xlsx] [--report-json reports/reconcile.json]
"""
from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hierarchy.cli import reconcile_main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(reconcile_main(sys.argv[1:]))
