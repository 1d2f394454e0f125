"""Remove hierarchy rows whose parent no longer exists.

Runs after synchronization; also usable on its own (``sweep-admin-orphans``).
Each phase commits separately so a failure leaves earlier phases applied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .dependents import (
    LEVEL_ORDER,
    LEVELS,
    LOCAL_UNIT,
    POLLING_UNIT_CASCADE,
    SUBREGION,
    delete_cascade,
    level_table,
    null_out,
    nullable_dependents,
    table,
)

_log = logging.getLogger(__name__)


@dataclass
class SweepReport:
    orphan_lgas: int = 0
    orphan_wards: int = 0
    orphan_polling_units: int = 0
    # "table.column" -> rows set to NULL
    nulled: Dict[str, int] = field(default_factory=dict)
    # table -> rows deleted
    deleted: Dict[str, int] = field(default_factory=dict)

    def total(self) -> int:
        return self.orphan_lgas + self.orphan_wards + self.orphan_polling_units + sum(self.nulled.values())

    def as_dict(self) -> dict:
        return {
            "orphan_lgas": self.orphan_lgas,
            "orphan_wards": self.orphan_wards,
            "orphan_polling_units": self.orphan_polling_units,
            "nulled": dict(self.nulled),
            "deleted": dict(self.deleted),
        }

    def add_counts(self, bucket: Dict[str, int], counts: Dict[str, int]) -> None:
        for k, n in counts.items():
            if n:
                bucket[k] = bucket.get(k, 0) + n


class OrphanSweeper:
    def __init__(self, session: Session) -> None:
        self.session = session

    def sweep(self) -> SweepReport:
        report = SweepReport()
        self._phase("orphan LGAs", lambda: self._sweep_orphan_lgas(report))
        self._phase("orphan wards", lambda: self._sweep_orphan_wards(report))
        self._phase("orphan polling units", lambda: self._sweep_orphan_polling_units(report))
        self._phase("dangling references", lambda: self._null_dangling(report))
        _log.info(
            "Orphan sweep: %d LGAs, %d wards, %d polling units removed; %d references cleared",
            report.orphan_lgas, report.orphan_wards, report.orphan_polling_units, sum(report.nulled.values()),
        )
        return report

    def _phase(self, name: str, fn: Callable[[], None]) -> None:
        try:
            fn()
            self.session.commit()
        except Exception:
            self.session.rollback()
            _log.error("orphan sweep failed during %s", name)
            raise

    def _missing_parent(self, level: str):
        """Condition on a child's parent column: parent row does not exist."""
        parent_ids = select(level_table(LEVELS[level].parent_level).c.id)
        return lambda col: col.not_in(parent_ids)

    def _count(self, level: str, condition) -> int:
        t = level_table(level)
        col = t.c[LEVELS[level].parent_column]
        return int(self.session.execute(select(func.count()).select_from(t).where(condition(col))).scalar() or 0)

    def _remove_wards(self, condition, report: SweepReport) -> int:
        """Delete wards matching ``condition(wards.lga_id)`` with their polling units."""
        wards = level_table(LOCAL_UNIT)
        doomed = select(wards.c.id).where(condition(wards.c.lga_id))
        report.add_counts(report.deleted, delete_cascade(self.session, POLLING_UNIT_CASCADE, lambda c: c.in_(doomed)))
        for ref in nullable_dependents(LOCAL_UNIT):
            n = null_out(self.session, ref, lambda c: c.in_(doomed))
            report.add_counts(report.nulled, {f"{ref.table}.{ref.column}": n})
        res = self.session.execute(delete(wards).where(condition(wards.c.lga_id)))
        n = res.rowcount or 0
        report.add_counts(report.deleted, {"wards": n})
        return n

    def _sweep_orphan_lgas(self, report: SweepReport) -> None:
        missing_state = self._missing_parent(SUBREGION)
        n = self._count(SUBREGION, missing_state)
        if not n:
            return
        lgas = level_table(SUBREGION)
        doomed = select(lgas.c.id).where(missing_state(lgas.c.state_id))
        _log.info("Removing %d LGA(s) whose state no longer exists", n)
        self._remove_wards(lambda c: c.in_(doomed), report)
        for ref in nullable_dependents(SUBREGION):
            cleared = null_out(self.session, ref, lambda c: c.in_(doomed))
            report.add_counts(report.nulled, {f"{ref.table}.{ref.column}": cleared})
        res = self.session.execute(delete(lgas).where(missing_state(lgas.c.state_id)))
        report.orphan_lgas += res.rowcount or 0
        report.add_counts(report.deleted, {"lgas": res.rowcount or 0})

    def _sweep_orphan_wards(self, report: SweepReport) -> None:
        missing_lga = self._missing_parent(LOCAL_UNIT)
        n = self._count(LOCAL_UNIT, missing_lga)
        if not n:
            return
        _log.info("Removing %d ward(s) whose LGA no longer exists", n)
        report.orphan_wards += self._remove_wards(missing_lga, report)

    def _sweep_orphan_polling_units(self, report: SweepReport) -> None:
        wards = level_table(LOCAL_UNIT)
        pus = table(POLLING_UNIT_CASCADE.table)
        ward_ids = select(wards.c.id)
        n = int(self.session.execute(
            select(func.count()).select_from(pus).where(pus.c.ward_id.not_in(ward_ids))
        ).scalar() or 0)
        if not n:
            return
        _log.info("Removing %d polling unit(s) whose ward no longer exists", n)
        counts = delete_cascade(self.session, POLLING_UNIT_CASCADE, lambda c: c.not_in(ward_ids))
        report.orphan_polling_units += counts.get(POLLING_UNIT_CASCADE.table, 0)
        report.add_counts(report.deleted, counts)

    def _null_dangling(self, report: SweepReport) -> None:
        for level in LEVEL_ORDER:
            ids = select(level_table(level).c.id)
            for ref in nullable_dependents(level):
                n = null_out(self.session, ref, lambda c, _ids=ids: c.not_in(_ids))
                if n:
                    _log.info("Cleared %d dangling %s.%s reference(s)", n, ref.table, ref.column)
                report.add_counts(report.nulled, {f"{ref.table}.{ref.column}": n})


