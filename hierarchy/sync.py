"""Bring one hierarchy level in line with the authoritative source.

For every parent scope (all states, one state's LGAs, one LGA's wards):

  1. solve the assignment between canonical records and store nodes;
  2. merge each leftover store node into its best-scoring matched sibling;
  3. create nodes for canonical records nothing matched;
  4. merge leftovers that had no matched sibling into the new nodes;
  5. rename/recode matched nodes to the canonical spelling.

Renames run last so sibling-uniqueness checks see the final sibling set. A
scope is one transaction.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from .assignment import CanonicalRecord, MatchCandidate, StoreNode, best_target, solve
from .dependents import LEVELS, level_table, read_nodes
from .errors import ConstraintViolation, NameCollisionError, RecordError, UnresolvedParentError
from .merge import MergeExecutor
from .normalize import ACCEPT_FLOOR, CONTAINMENT_SCORE, similarity, spaced_key

_log = logging.getLogger(__name__)


@dataclass
class SyncStats:
    level: str
    scopes: int = 0
    matched: int = 0
    merged: int = 0
    created: int = 0
    renamed: int = 0
    skipped: int = 0

    def changes(self) -> int:
        return self.merged + self.created + self.renamed

    def as_dict(self) -> dict:
        return {
            "level": self.level,
            "scopes": self.scopes,
            "matched": self.matched,
            "merged": self.merged,
            "created": self.created,
            "renamed": self.renamed,
            "skipped": self.skipped,
        }


@dataclass
class LevelResult:
    level: str
    stats: SyncStats
    # canonical code -> store node id, used to resolve the next level's parents
    resolved: Dict[str, str] = field(default_factory=dict)
    anomalies: List[RecordError] = field(default_factory=list)


class CanonicalSynchronizer:
    def __init__(
        self,
        session: Session,
        *,
        accept_floor: float = ACCEPT_FLOOR,
        containment_score: float = CONTAINMENT_SCORE,
    ) -> None:
        self.session = session
        self.accept_floor = accept_floor
        self.scorer = partial(similarity, containment=containment_score)
        self.merger = MergeExecutor(session)

    def synchronize(
        self,
        level: str,
        records: Sequence[CanonicalRecord],
        parent_ids: Optional[Mapping[str, str]] = None,
    ) -> LevelResult:
        """Reconcile every scope of ``level``.

        ``parent_ids`` maps canonical parent codes to store ids and comes from
        the previous level's result; it is ignored for the top level.
        """
        spec = LEVELS[level]
        result = LevelResult(level=level, stats=SyncStats(level=level))

        if spec.parent_level is None:
            scopes = [(None, "all", list(records))]
        else:
            groups: Dict[str, List[CanonicalRecord]] = {}
            for rec in records:
                groups.setdefault(rec.parent_code or "", []).append(rec)
            scopes = []
            for parent_code, recs in groups.items():
                parent_id = (parent_ids or {}).get(parent_code)
                if parent_id is None:
                    for rec in recs:
                        self._record(result, UnresolvedParentError(
                            f"{spec.label} {rec.name!r} ({rec.code}): parent {parent_code!r} not found",
                            name=rec.name, code=rec.code, scope=parent_code,
                        ))
                    continue
                scopes.append((parent_id, self._parent_label(spec.parent_level, parent_id), recs))

        for parent_id, label, recs in scopes:
            try:
                self.sync_scope(level, parent_id, recs, result, label=label)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
            result.stats.scopes += 1

        s = result.stats
        _log.info("%s: %d scope(s), matched %d, merged %d, created %d, renamed %d, skipped %d",
                  spec.label, s.scopes, s.matched, s.merged, s.created, s.renamed, s.skipped)
        return result

    def sync_scope(
        self,
        level: str,
        parent_id: Optional[str],
        canonicals: Sequence[CanonicalRecord],
        result: LevelResult,
        *,
        label: str = "",
    ) -> None:
        spec = LEVELS[level]
        stats = result.stats
        store = read_nodes(self.session, level, parent_id)
        if len(store) != len(canonicals):
            _log.info("  %s: store=%d, expected=%d", label, len(store), len(canonicals))

        assignment = solve(canonicals, store, floor=self.accept_floor, scorer=self.scorer)
        stats.matched += len(assignment.matches)
        for m in assignment.matches:
            if m.score < 1.0:
                _log.info("    [%s] Matched: %r <-> %r (%.2f)", label, m.canonical.name, m.store_node.name, m.score)

        targets: List[MatchCandidate] = list(assignment.matches)
        strays: List[StoreNode] = []
        for dup in assignment.unmatched_store:
            if not self._merge_duplicate(level, dup, targets, label, stats):
                strays.append(dup)

        for canon in assignment.unmatched_canonical:
            node = self._create(level, parent_id, canon, result, label)
            if node is not None:
                targets.append(MatchCandidate(canon, node, 1.0))

        for dup in strays:
            if not self._merge_duplicate(level, dup, targets, label, stats, kind="stray into created"):
                _log.warning("[%s] %s %r has no canonical counterpart; left in place", label, spec.label, dup.name)

        self._rename(level, parent_id, assignment.matches, result, label)

        for m in targets:
            result.resolved[m.canonical.code] = m.store_node.id

    # -- steps -------------------------------------------------------------

    def _merge_duplicate(self, level: str, dup: StoreNode, targets: Sequence[MatchCandidate],
                         label: str, stats: SyncStats, kind: str = "dup") -> bool:
        target = best_target(dup, targets, scorer=self.scorer)
        if target is None:
            return False
        _log.info("    [%s] Merging %s: %r -> %r (%.2f)", label, kind, dup.name, target.canonical.name, target.score)
        merged = self.merger.merge(level, dup.id, target.store_node.id)
        if merged.found:
            stats.merged += 1
        return True

    def _create(self, level: str, parent_id: Optional[str], canon: CanonicalRecord,
                result: LevelResult, label: str) -> Optional[StoreNode]:
        spec = LEVELS[level]
        t = level_table(level)
        siblings = read_nodes(self.session, level, parent_id)
        clash = next((n for n in siblings if n.code == canon.code or n.name == canon.name), None)
        if clash is not None:
            self._record(result, ConstraintViolation(
                f"[{label}] cannot create {spec.label} {canon.name!r} ({canon.code}): "
                f"conflicts with existing {clash.name!r} ({clash.code})",
                name=canon.name, code=canon.code, scope=label,
            ))
            # The clashing row stands in for the canonical unit until a later pass matches it
            result.resolved[canon.code] = clash.id
            return None

        node_id = str(uuid.uuid4())
        values = {"id": node_id, "name": canon.name, "code": canon.code}
        if spec.parent_column:
            values[spec.parent_column] = parent_id
        self.session.execute(insert(t).values(**values))
        result.stats.created += 1
        _log.info("    [%s] Creating: %r (%s)", label, canon.name, canon.code)
        return StoreNode(id=node_id, name=canon.name, code=canon.code, parent_id=parent_id)

    def _rename(self, level: str, parent_id: Optional[str], matches: Sequence[MatchCandidate],
                result: LevelResult, label: str) -> None:
        t = level_table(level)
        current = {n.id: n for n in read_nodes(self.session, level, parent_id)}
        for m in matches:
            node = current.get(m.store_node.id)
            canon = m.canonical
            if node is None or (node.name == canon.name and node.code == canon.code):
                continue
            clash = next(
                (n for n in current.values()
                 if n.id != node.id and (n.name == canon.name or n.code == canon.code)),
                None,
            )
            if clash is not None:
                self._record(result, NameCollisionError(
                    f"[{label}] name conflict renaming {node.name!r} -> {canon.name!r} "
                    f"({canon.code}); sibling {clash.name!r} ({clash.code}) already holds it",
                    name=canon.name, code=canon.code, scope=label,
                ))
                continue
            self.session.execute(
                update(t).where(t.c.id == node.id).values(name=canon.name, code=canon.code)
            )
            current[node.id] = StoreNode(id=node.id, name=canon.name, code=canon.code, parent_id=node.parent_id)
            result.stats.renamed += 1
            if node.name == canon.name:
                _log.info("    [%s] Recoded %r: %s -> %s", label, node.name, node.code, canon.code)
            elif spaced_key(node.name) == spaced_key(canon.name):
                _log.info("    [%s] Respelled: %r -> %r", label, node.name, canon.name)
            else:
                _log.info("    [%s] Renamed: %r -> %r", label, node.name, canon.name)

    # -- helpers -----------------------------------------------------------

    def _record(self, result: LevelResult, err: RecordError) -> None:
        _log.warning("%s", err)
        result.anomalies.append(err)
        result.stats.skipped += 1

    def _parent_label(self, parent_level: str, parent_id: str) -> str:
        t = level_table(parent_level)
        name = self.session.execute(select(t.c.name).where(t.c.id == parent_id)).scalar()
        return name or parent_id
