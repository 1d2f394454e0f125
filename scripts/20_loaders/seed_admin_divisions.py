#!/usr/bin/env python3
"""Seed states, LGAs and wards from the nested divisions JSON/YAML.

Skips when any state already exists. Usage:
  python scripts/20_loaders/seed_admin_divisions.py data/nigeria_admin_divisions.json [--db-url URL]
"""
from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hierarchy.cli import seed_main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(seed_main(sys.argv[1:]))
