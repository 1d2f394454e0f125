"""Post-run validation: counts per level and per parent, remaining orphans.

A count mismatch is logged as a warning and never aborts; by the time the
report runs every correction has already been committed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .dependents import DEPENDENTS, LEVEL_ORDER, LEVELS, LOCAL_UNIT, REGION, SUBREGION, level_table, table

_log = logging.getLogger(__name__)


@dataclass
class ParentCount:
    name: str
    code: str
    count: int
    expected: Optional[int] = None

    @property
    def mismatch(self) -> bool:
        return self.expected is not None and self.expected != self.count


@dataclass
class HierarchyReport:
    totals: Dict[str, int] = field(default_factory=dict)
    expected: Dict[str, int] = field(default_factory=dict)
    lgas_per_state: List[ParentCount] = field(default_factory=list)
    wards_per_state: List[ParentCount] = field(default_factory=list)
    polling_units: int = 0
    polling_units_per_state: List[ParentCount] = field(default_factory=list)
    # "table.column" -> rows whose non-null reference resolves to nothing
    orphans: Dict[str, int] = field(default_factory=dict)

    def mismatches(self) -> List[Tuple[str, int, int]]:
        return [
            (level, self.totals.get(level, 0), exp)
            for level, exp in self.expected.items()
            if self.totals.get(level, 0) != exp
        ]

    def orphan_total(self) -> int:
        return sum(self.orphans.values())

    @property
    def ok(self) -> bool:
        return not self.mismatches() and not self.orphan_total() and not any(
            p.mismatch for p in self.lgas_per_state
        )

    def to_dict(self) -> dict:
        def rows(items: List[ParentCount]) -> List[dict]:
            return [
                {"name": p.name, "code": p.code, "count": p.count, "expected": p.expected}
                for p in items
            ]

        return {
            "totals": dict(self.totals),
            "expected": dict(self.expected),
            "mismatches": [
                {"level": level, "actual": actual, "expected": exp}
                for level, actual, exp in self.mismatches()
            ],
            "lgas_per_state": rows(self.lgas_per_state),
            "wards_per_state": rows(self.wards_per_state),
            "polling_units": self.polling_units,
            "polling_units_per_state": rows(self.polling_units_per_state),
            "orphans": dict(self.orphans),
            "ok": self.ok,
        }


class Validator:
    def __init__(self, session: Session) -> None:
        self.session = session

    def validate(
        self,
        expected: Optional[Mapping[str, int]] = None,
        expected_per_state: Optional[Mapping[str, int]] = None,
    ) -> HierarchyReport:
        """Build the report.

        ``expected`` maps level -> total; ``expected_per_state`` maps a state's
        code -> expected LGA count.
        """
        report = HierarchyReport(expected=dict(expected or {}))
        for level in LEVEL_ORDER:
            t = level_table(level)
            report.totals[level] = self._scalar(select(func.count()).select_from(t))

        states = level_table(REGION)
        lgas = level_table(SUBREGION)
        wards = level_table(LOCAL_UNIT)
        per_state = expected_per_state or {}

        lga_counts = self.session.execute(
            select(states.c.name, states.c.code, func.count(lgas.c.id))
            .select_from(states.outerjoin(lgas, lgas.c.state_id == states.c.id))
            .group_by(states.c.id, states.c.name, states.c.code)
            .order_by(states.c.name)
        ).all()
        report.lgas_per_state = [
            ParentCount(name=r[0], code=r[1], count=int(r[2]), expected=per_state.get(r[1]))
            for r in lga_counts
        ]

        ward_counts = self.session.execute(
            select(states.c.name, states.c.code, func.count(wards.c.id))
            .select_from(
                states.outerjoin(lgas, lgas.c.state_id == states.c.id)
                .outerjoin(wards, wards.c.lga_id == lgas.c.id)
            )
            .group_by(states.c.id, states.c.name, states.c.code)
            .order_by(states.c.name)
        ).all()
        report.wards_per_state = [ParentCount(name=r[0], code=r[1], count=int(r[2])) for r in ward_counts]

        units = table("polling_units")
        report.polling_units = self._scalar(select(func.count()).select_from(units))
        unit_counts = self.session.execute(
            select(states.c.name, states.c.code, func.count(units.c.id))
            .select_from(
                states.outerjoin(lgas, lgas.c.state_id == states.c.id)
                .outerjoin(wards, wards.c.lga_id == lgas.c.id)
                .outerjoin(units, units.c.ward_id == wards.c.id)
            )
            .group_by(states.c.id, states.c.name, states.c.code)
            .order_by(states.c.name)
        ).all()
        report.polling_units_per_state = [ParentCount(name=r[0], code=r[1], count=int(r[2])) for r in unit_counts]

        report.orphans = self.count_orphans()
        self._log(report)
        return report

    def count_orphans(self) -> Dict[str, int]:
        """Rows whose hierarchy reference is non-null but points nowhere."""
        out: Dict[str, int] = {}
        for level in LEVEL_ORDER:
            spec = LEVELS[level]
            if spec.parent_column:
                out[f"{spec.table}.{spec.parent_column}"] = self._dangling(
                    spec.table, spec.parent_column, spec.parent_level
                )
            for ref in DEPENDENTS[level]:
                out[f"{ref.table}.{ref.column}"] = self._dangling(ref.table, ref.column, level)
        return out

    def _dangling(self, table_name: str, column: str, level: str) -> int:
        t = table(table_name)
        col = t.c[column]
        ids = select(level_table(level).c.id)
        return self._scalar(select(func.count()).select_from(t).where(col.is_not(None), col.not_in(ids)))

    def _scalar(self, stmt) -> int:
        return int(self.session.execute(stmt).scalar() or 0)

    def _log(self, report: HierarchyReport) -> None:
        _log.info("=== Validation ===")
        for level in LEVEL_ORDER:
            exp = report.expected.get(level)
            suffix = f" (expected {exp})" if exp is not None else ""
            _log.info("  %s: %d%s", LEVELS[level].label + "s", report.totals[level], suffix)
        _log.info("  Polling units: %d", report.polling_units)
        for level, actual, exp in report.mismatches():
            _log.warning("%s count mismatch: %d in store, %d expected", LEVELS[level].label, actual, exp)

        _log.info("  LGAs per state:")
        for p in report.lgas_per_state:
            _log.info("    %s: %d", p.name, p.count)
            if p.mismatch:
                _log.warning("%s has %d LGAs, expected %d", p.name, p.count, p.expected)

        _log.info("  Wards / polling units per state:")
        for w, u in zip(report.wards_per_state, report.polling_units_per_state):
            _log.info("    %s: %d wards, %d polling units", w.name, w.count, u.count)

        dangling = {k: n for k, n in report.orphans.items() if n}
        if dangling:
            for key, n in sorted(dangling.items()):
                _log.warning("%d orphaned reference(s) remain in %s", n, key)
        else:
            _log.info("  Orphans: none")
