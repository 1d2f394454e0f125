"""Stage orchestration for a full reconciliation run.

Synchronize states -> LGAs -> wards -> orphan sweep -> validate, strictly in
that order: each level needs the store ids its parents were given above.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .config import ReconcileConfig
from .dependents import LEVEL_ORDER, LEVELS, SUBREGION, level_table
from .errors import RecordError, StoreUnavailable
from .orphans import OrphanSweeper, SweepReport
from .report import HierarchyReport, Validator
from .source import CanonicalSource
from .sync import CanonicalSynchronizer, SyncStats

_log = logging.getLogger(__name__)


@dataclass
class RunResult:
    stats: Dict[str, SyncStats] = field(default_factory=dict)
    anomalies: List[RecordError] = field(default_factory=list)
    sweep: Optional[SweepReport] = None
    report: Optional[HierarchyReport] = None

    def changes(self) -> int:
        return sum(s.changes() for s in self.stats.values())

    def to_dict(self) -> dict:
        return {
            "stats": {level: s.as_dict() for level, s in self.stats.items()},
            "anomalies": [a.as_dict() for a in self.anomalies],
            "sweep": self.sweep.as_dict() if self.sweep else None,
            "report": self.report.to_dict() if self.report else None,
        }


def check_store(session: Session) -> None:
    """Fail fast when the store cannot be reached."""
    try:
        session.execute(text("SELECT 1"))
    except OperationalError as exc:
        raise StoreUnavailable(f"cannot reach the store: {exc.orig}") from exc


class ReconciliationEngine:
    def __init__(self, session: Session, config: ReconcileConfig) -> None:
        self.session = session
        self.config = config
        self.synchronizer = CanonicalSynchronizer(
            session,
            accept_floor=config.accept_floor,
            containment_score=config.containment_score,
        )

    def run(self, source: CanonicalSource) -> RunResult:
        check_store(self.session)
        result = RunResult()
        resolved: Dict[str, str] = {}
        for level in LEVEL_ORDER:
            _log.info("=== Synchronizing %ss ===", LEVELS[level].label)
            parent_ids = self._parent_ids(level, source, resolved) if LEVELS[level].parent_level else None
            level_result = self.synchronizer.synchronize(level, source.records(level), parent_ids)
            result.stats[level] = level_result.stats
            result.anomalies.extend(level_result.anomalies)
            resolved = level_result.resolved

        _log.info("=== Sweeping orphans ===")
        result.sweep = OrphanSweeper(self.session).sweep()
        result.report = self.validate(source)
        self._summarize(result)
        return result

    def validate(self, source: Optional[CanonicalSource] = None) -> HierarchyReport:
        expected: Dict[str, int] = dict(source.counts()) if source else {}
        expected.update(self.config.expected_counts)
        per_state = None
        if source is not None:
            per_state = {code: len(recs) for code, recs in source.by_parent(SUBREGION).items() if code}
        return Validator(self.session).validate(expected, per_state)

    def _parent_ids(self, level: str, source: CanonicalSource, resolved: Mapping[str, str]) -> Dict[str, str]:
        """Canonical parent code -> store id.

        Codes the previous level did not resolve fall back to a store parent
        already carrying that code.
        """
        ids = dict(resolved)
        wanted = {r.parent_code for r in source.records(level) if r.parent_code and r.parent_code not in ids}
        if wanted:
            t = level_table(LEVELS[level].parent_level)
            for node_id, code in self.session.execute(select(t.c.id, t.c.code).where(t.c.code.in_(wanted))):
                ids.setdefault(code, node_id)
        return ids

    def _summarize(self, result: RunResult) -> None:
        _log.info("=== Summary ===")
        for level, s in result.stats.items():
            _log.info("  %ss: merged %d, created %d, renamed %d, skipped %d",
                      LEVELS[level].label, s.merged, s.created, s.renamed, s.skipped)
        if result.anomalies:
            _log.warning("%d record(s) need operator attention", len(result.anomalies))


def sweep_and_validate(session: Session, config: ReconcileConfig) -> RunResult:
    """Orphan sweep plus validation, without touching the source."""
    check_store(session)
    result = RunResult()
    result.sweep = OrphanSweeper(session).sweep()
    expected = dict(config.expected_counts)
    result.report = Validator(session).validate(expected)
    return result


__all__ = ["ReconciliationEngine", "RunResult", "check_store", "sweep_and_validate"]
