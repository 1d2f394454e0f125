"""Read the authoritative boundary workbook into CanonicalRecords.

The workbook has one sheet per level. Every row needs a name and a code;
sub-region and local-unit rows also need their parent's code. Any structural
problem raises SourceFormatError before the store is touched.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from openpyxl import load_workbook

from .assignment import CanonicalRecord
from .config import ReconcileConfig, SheetSpec
from .dependents import LEVEL_ORDER, LOCAL_UNIT, REGION, SUBREGION
from .errors import SourceFormatError

_log = logging.getLogger(__name__)


@dataclass
class CanonicalSource:
    regions: List[CanonicalRecord] = field(default_factory=list)
    subregions: List[CanonicalRecord] = field(default_factory=list)
    local_units: List[CanonicalRecord] = field(default_factory=list)

    def records(self, level: str) -> List[CanonicalRecord]:
        return {REGION: self.regions, SUBREGION: self.subregions, LOCAL_UNIT: self.local_units}[level]

    def by_parent(self, level: str) -> "OrderedDict[Optional[str], List[CanonicalRecord]]":
        """Group a level's records by parent code, keeping first-seen order."""
        groups: "OrderedDict[Optional[str], List[CanonicalRecord]]" = OrderedDict()
        for rec in self.records(level):
            groups.setdefault(rec.parent_code, []).append(rec)
        return groups

    def counts(self) -> Dict[str, int]:
        return {level: len(self.records(level)) for level in LEVEL_ORDER}


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def records_from_rows(
    level: str,
    rows: Iterable[Sequence[Any]],
    spec: SheetSpec,
    name_aliases: Optional[Mapping[str, str]] = None,
) -> List[CanonicalRecord]:
    """Turn a header row plus data rows into records for one level."""
    it = iter(rows)
    try:
        header = [_cell(h) for h in next(it)]
    except StopIteration:
        raise SourceFormatError(f"sheet {spec.sheet!r} is empty")

    wanted = [spec.name_column, spec.code_column]
    if level != REGION:
        if not spec.parent_column:
            raise SourceFormatError(f"sheet {spec.sheet!r}: no parent column configured for {level}")
        wanted.append(spec.parent_column)
    missing = [c for c in wanted if c not in header]
    if missing:
        raise SourceFormatError(f"sheet {spec.sheet!r} is missing column(s): {', '.join(missing)}")
    idx = {c: header.index(c) for c in wanted}

    aliases = name_aliases or {}
    out: List[CanonicalRecord] = []
    seen_codes: set = set()
    for rownum, row in enumerate(it, start=2):
        values = list(row) + [None] * (len(header) - len(row))
        if all(_cell(v) == "" for v in values):
            continue
        fields = {c: _cell(values[i]) for c, i in idx.items()}
        for c in wanted:
            if not fields[c]:
                raise SourceFormatError(f"sheet {spec.sheet!r} row {rownum}: missing {c}")
        name = fields[spec.name_column]
        if level == REGION:
            name = aliases.get(name, name)
        code = fields[spec.code_column]
        if code in seen_codes:
            _log.warning("%s row %d: duplicate code %s (%s) ignored", spec.sheet, rownum, code, name)
            continue
        seen_codes.add(code)
        out.append(CanonicalRecord(
            name=name,
            code=code,
            parent_code=fields[spec.parent_column] if level != REGION else None,
        ))
    return out


def read_workbook(path: Path, config: ReconcileConfig) -> CanonicalSource:
    path = Path(path)
    if not path.is_file():
        raise SourceFormatError(f"source workbook not found: {path}")
    wb = load_workbook(filename=str(path), read_only=True, data_only=True)
    try:
        source = CanonicalSource()
        for level in LEVEL_ORDER:
            spec = config.sheets[level]
            if spec.sheet not in wb.sheetnames:
                raise SourceFormatError(f"{path.name} has no sheet named {spec.sheet!r}")
            ws = wb[spec.sheet]
            source.records(level).extend(
                records_from_rows(level, ws.iter_rows(values_only=True), spec, config.region_name_aliases)
            )
    finally:
        wb.close()
    counts = source.counts()
    _log.info("Source %s: %d states, %d LGAs, %d wards",
              path.name, counts[REGION], counts[SUBREGION], counts[LOCAL_UNIT])
    return source
