"""Collapse a duplicate hierarchy node into another one.

Order matters and is the whole point of this module:

  1. children of the loser are merged into same-named children of the winner,
     or reparented to the winner;
  2. every declared dependent foreign key is repointed loser -> winner;
  3. the loser row is deleted.

Nothing is deleted while something still references it. A loser that no
longer exists is treated as an already-completed merge.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from .dependents import DEPENDENTS, LEVELS, level_table, node_exists, read_nodes, repoint
from .normalize import strict_key

_log = logging.getLogger(__name__)


@dataclass
class MergeResult:
    level: str
    loser_id: str
    winner_id: str
    found: bool = True
    repointed: Dict[str, int] = field(default_factory=dict)
    children_merged: int = 0
    children_reparented: int = 0


class MergeExecutor:
    def __init__(self, session: Session) -> None:
        self.session = session

    def merge(self, level: str, loser_id: str, winner_id: str) -> MergeResult:
        if loser_id == winner_id:
            raise ValueError(f"cannot merge {LEVELS[level].label} {loser_id} into itself")
        result = MergeResult(level=level, loser_id=loser_id, winner_id=winner_id)
        if not node_exists(self.session, level, loser_id):
            _log.debug("merge %s %s -> %s: loser already gone", level, loser_id, winner_id)
            result.found = False
            return result

        spec = LEVELS[level]
        if spec.child_level:
            self._resolve_children(spec.child_level, loser_id, winner_id, result)

        for ref in DEPENDENTS[level]:
            n = repoint(self.session, ref, loser_id, winner_id)
            if n:
                result.repointed[f"{ref.table}.{ref.column}"] = n

        t = level_table(level)
        self.session.execute(delete(t).where(t.c.id == loser_id))
        return result

    def _resolve_children(self, child_level: str, loser_id: str, winner_id: str, result: MergeResult) -> None:
        child_spec = LEVELS[child_level]
        ct = level_table(child_level)
        winner_children = read_nodes(self.session, child_level, winner_id)
        by_key: Dict[str, str] = {}
        by_code: Dict[str, str] = {}
        for c in winner_children:
            by_key.setdefault(strict_key(c.name), c.id)
            by_code.setdefault(c.code, c.id)

        for child in read_nodes(self.session, child_level, loser_id):
            key = strict_key(child.name)
            # A shared external code means the same unit even when spellings drift
            target = by_key.get(key) or by_code.get(child.code)
            if target:
                _log.debug("  %s %r merges into %s", child_spec.label, child.name, target)
                self.merge(child_level, child.id, target)
                result.children_merged += 1
            else:
                self.session.execute(
                    update(ct).where(ct.c.id == child.id).values({child_spec.parent_column: winner_id})
                )
                by_key[key] = child.id
                by_code.setdefault(child.code, child.id)
                result.children_reparented += 1
