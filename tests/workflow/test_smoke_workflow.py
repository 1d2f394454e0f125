from __future__ import annotations

import json
from pathlib import Path

import pytest

pytestmark = pytest.mark.workflow


def _assert_ok(cp, context: str = ""):
    if cp.returncode != 0:
        msg = [
            f"Command failed{': ' + context if context else ''}",
            f"RC={cp.returncode}",
            "STDOUT:",
            cp.stdout,
            "STDERR:",
            cp.stderr,
        ]
        raise AssertionError("\n".join(msg))


def test_bootstrap_seed_reconcile_report(cli, venv_python: str, tmp_db_url: str, tmp_path: Path, make_workbook):
    cp = cli([venv_python, "scripts/00_bootstrap/bootstrap_db.py", "--db-url", tmp_db_url])
    _assert_ok(cp, "bootstrap_db")

    doc = tmp_path / "divisions.json"
    doc.write_text(json.dumps({"nigeriaAdministrativeDivisions": {"states": [
        {"id": "NG006", "name": "Bayelsa", "lgas": [
            {"id": "NG006003", "name": "Ekeremor", "totalWards": 1},
            {"id": "NG006099", "name": "Ekeremor North", "totalWards": 1},
        ]},
        {"id": "NG015", "name": "FCT", "lgas": [{"id": "NG015001", "name": "Abaji"}]},
    ]}}), encoding="utf-8")
    cp = cli([venv_python, "scripts/20_loaders/seed_admin_divisions.py", str(doc), "--db-url", tmp_db_url])
    _assert_ok(cp, "seed_admin_divisions")
    assert "Seeded: states=2 lgas=3 wards=2" in cp.stdout

    config = tmp_path / "reconcile.yaml"
    config.write_text("accept_floor: 0.5\n", encoding="utf-8")
    workbook = make_workbook()
    report = tmp_path / "reconcile.json"
    cp = cli([
        venv_python, "scripts/30_normalize_match/reconcile_admin_boundaries.py",
        "--db-url", tmp_db_url, "--source", str(workbook), "--config", str(config),
        "--report-json", str(report),
    ])
    _assert_ok(cp, "reconcile_admin_boundaries")
    assert "Merging dup: 'Ekeremor North' -> 'Ekeremor'" in cp.stdout
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["report"]["totals"] == {"region": 2, "subregion": 3, "local_unit": 2}

    # Nothing left to fix on a second pass
    cp = cli([
        venv_python, "scripts/30_normalize_match/reconcile_admin_boundaries.py",
        "--db-url", tmp_db_url, "--source", str(workbook), "--config", str(config),
    ])
    _assert_ok(cp, "reconcile_admin_boundaries (second run)")
    assert "Done. changes=0 anomalies=0 ok=True" in cp.stdout

    cp = cli([venv_python, "scripts/50_cleanup_repair/cleanup_orphans.py", "--db-url", tmp_db_url])
    _assert_ok(cp, "cleanup_orphans")

    cp = cli([
        venv_python, "scripts/60_reports_analysis/report_hierarchy_counts.py",
        "--db-url", tmp_db_url, "--config", str(config),
    ])
    _assert_ok(cp, "report_hierarchy_counts")
    assert "Orphans: none" in cp.stdout
