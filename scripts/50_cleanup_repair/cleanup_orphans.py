#!/usr/bin/env python3
"""Remove LGAs, wards and polling units whose parent no longer exists.

Member and content references to removed wards are cleared, not deleted. Usage:
  python scripts/50_cleanup_repair/cleanup_orphans.py [--db-url URL]
"""
from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hierarchy.cli import sweep_main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(sweep_main(sys.argv[1:]))
