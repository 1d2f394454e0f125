from __future__ import annotations

import pytest

from hierarchy.config import DEFAULT_SHEETS, ReconcileConfig
from hierarchy.dependents import LOCAL_UNIT, REGION, SUBREGION
from hierarchy.errors import SourceFormatError
from hierarchy.source import read_workbook, records_from_rows


def test_reads_three_levels_with_alias(make_workbook):
    source = read_workbook(make_workbook(), ReconcileConfig())

    assert [r.name for r in source.regions] == ["Bayelsa", "Federal Capital Territory"]
    assert source.counts() == {REGION: 2, SUBREGION: 3, LOCAL_UNIT: 2}
    assert source.subregions[1].parent_code == "NG006"
    assert list(source.by_parent(SUBREGION)) == ["NG006", "NG015"]


def test_missing_sheet(make_workbook):
    path = make_workbook(admin3=None)
    with pytest.raises(SourceFormatError, match="nga_admin3"):
        read_workbook(path, ReconcileConfig())


def test_missing_file(tmp_path):
    with pytest.raises(SourceFormatError):
        read_workbook(tmp_path / "nope.xlsx", ReconcileConfig())


def test_missing_column():
    rows = [("adm2_name", "adm2_pcode"), ("Ekeremor", "NG006003")]
    with pytest.raises(SourceFormatError, match="adm1_pcode"):
        records_from_rows(SUBREGION, rows, DEFAULT_SHEETS[SUBREGION])


def test_row_missing_required_field():
    rows = [("adm1_name", "adm1_pcode"), ("Bayelsa", "NG006"), ("Kano", None)]
    with pytest.raises(SourceFormatError, match="row 3"):
        records_from_rows(REGION, rows, DEFAULT_SHEETS[REGION])


def test_blank_rows_skipped_and_duplicate_codes_dropped():
    rows = [
        ("adm1_name", "adm1_pcode", "extra"),
        ("Bayelsa", "NG006", "x"),
        (None, None, None),
        (" Bayelsa State ", "NG006"),
        ("Kano ", " NG020 ", None),
    ]
    records = records_from_rows(REGION, rows, DEFAULT_SHEETS[REGION])
    assert [(r.name, r.code) for r in records] == [("Bayelsa", "NG006"), ("Kano", "NG020")]


def test_empty_sheet():
    with pytest.raises(SourceFormatError, match="empty"):
        records_from_rows(REGION, [], DEFAULT_SHEETS[REGION])
