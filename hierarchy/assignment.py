"""Greedy one-to-one assignment of store nodes to canonical records.

Every (canonical, store node) pair scoring at least the acceptance floor
becomes a MatchCandidate. Candidates from the whole scope are sorted by score
(stable, so ties keep discovery order: canonical order first, then store
order) and accepted greedily while both sides are still unclaimed.

This is not an optimal bipartite matcher. Duplicate counts per scope are in
the single digits, so a Hungarian solver could replace ``solve`` behind the
same MatchCandidate/Assignment types if that ever changes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .normalize import ACCEPT_FLOOR, similarity

Scorer = Callable[[str, str], float]


@dataclass(frozen=True)
class CanonicalRecord:
    name: str
    code: str
    parent_code: Optional[str] = None


@dataclass(frozen=True)
class StoreNode:
    id: str
    name: str
    code: str
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class MatchCandidate:
    canonical: CanonicalRecord
    store_node: StoreNode
    score: float


@dataclass
class Assignment:
    matches: List[MatchCandidate] = field(default_factory=list)
    unmatched_canonical: List[CanonicalRecord] = field(default_factory=list)
    unmatched_store: List[StoreNode] = field(default_factory=list)

    def mapping(self) -> dict:
        """canonical code -> store node id for every accepted match."""
        return {m.canonical.code: m.store_node.id for m in self.matches}


def build_candidates(
    canonicals: Sequence[CanonicalRecord],
    store_nodes: Sequence[StoreNode],
    *,
    floor: float = ACCEPT_FLOOR,
    scorer: Scorer = similarity,
) -> List[tuple]:
    """Return (canonical index, store index, candidate) triples in discovery order."""
    out: List[tuple] = []
    for ci, canon in enumerate(canonicals):
        for si, node in enumerate(store_nodes):
            score = scorer(canon.name, node.name)
            if score >= floor:
                out.append((ci, si, MatchCandidate(canon, node, score)))
    return out


def solve(
    canonicals: Sequence[CanonicalRecord],
    store_nodes: Sequence[StoreNode],
    *,
    floor: float = ACCEPT_FLOOR,
    scorer: Scorer = similarity,
) -> Assignment:
    candidates = build_candidates(canonicals, store_nodes, floor=floor, scorer=scorer)
    candidates.sort(key=lambda t: t[2].score, reverse=True)

    claimed_canon: set = set()
    claimed_store: set = set()
    result = Assignment()
    for ci, si, cand in candidates:
        if ci in claimed_canon or si in claimed_store:
            continue
        claimed_canon.add(ci)
        claimed_store.add(si)
        result.matches.append(cand)

    result.unmatched_canonical = [c for i, c in enumerate(canonicals) if i not in claimed_canon]
    result.unmatched_store = [n for i, n in enumerate(store_nodes) if i not in claimed_store]
    return result


def best_target(
    duplicate: StoreNode,
    matches: Sequence[MatchCandidate],
    *,
    scorer: Scorer = similarity,
) -> Optional[MatchCandidate]:
    """Pick the matched pair a leftover store node should be merged into.

    No floor applies: a duplicate is merged into the best available target
    even when that target scores low. The first of equal scores wins.
    """
    best: Optional[MatchCandidate] = None
    for m in matches:
        score = scorer(duplicate.name, m.canonical.name)
        if best is None or score > best.score:
            best = MatchCandidate(m.canonical, m.store_node, score)
    return best
