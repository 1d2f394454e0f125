"""Declared hierarchy levels and the tables that point at them.

Everything that rewrites or removes foreign keys (merge, orphan sweep,
validation) walks these declarations instead of naming tables itself, so a
new dependent table is one more ForeignKeyRef here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import Table, delete, func, select, update
from sqlalchemy.orm import Session

from db.models import Base

from .assignment import StoreNode

REGION = "region"
SUBREGION = "subregion"
LOCAL_UNIT = "local_unit"

LEVEL_ORDER: Tuple[str, ...] = (REGION, SUBREGION, LOCAL_UNIT)


@dataclass(frozen=True)
class LevelSpec:
    name: str
    table: str
    label: str
    parent_column: Optional[str] = None
    parent_level: Optional[str] = None
    child_level: Optional[str] = None


LEVELS: Dict[str, LevelSpec] = {
    REGION: LevelSpec(REGION, "states", "State", child_level=SUBREGION),
    SUBREGION: LevelSpec(SUBREGION, "lgas", "LGA", parent_column="state_id",
                         parent_level=REGION, child_level=LOCAL_UNIT),
    LOCAL_UNIT: LevelSpec(LOCAL_UNIT, "wards", "Ward", parent_column="lga_id",
                          parent_level=SUBREGION),
}


@dataclass(frozen=True)
class ForeignKeyRef:
    table: str
    column: str
    nullable: bool = True


_SCOPED_TABLES = ("events", "news_posts", "micro_tasks", "volunteer_tasks", "issue_campaigns")

DEPENDENTS: Dict[str, Tuple[ForeignKeyRef, ...]] = {
    REGION: tuple(ForeignKeyRef(t, "state_id") for t in _SCOPED_TABLES),
    SUBREGION: tuple(ForeignKeyRef(t, "lga_id") for t in _SCOPED_TABLES),
    LOCAL_UNIT: (
        ForeignKeyRef("polling_units", "ward_id", nullable=False),
        ForeignKeyRef("members", "ward_id"),
    ) + tuple(ForeignKeyRef(t, "ward_id") for t in _SCOPED_TABLES),
}


@dataclass(frozen=True)
class CascadeRef:
    """Rows of ``table`` whose ``column`` points at a row being deleted.

    ``children`` are removed before the rows of ``table`` themselves.
    """

    table: str
    column: str
    children: Tuple["CascadeRef", ...] = ()


POLLING_UNIT_CASCADE = CascadeRef("polling_units", "ward_id", children=(
    CascadeRef("polling_unit_results", "polling_unit_id"),
    CascadeRef("incidents", "polling_unit_id", children=(
        CascadeRef("incident_media", "incident_id"),
    )),
    CascadeRef("polling_agents", "polling_unit_id"),
    CascadeRef("result_sheets", "polling_unit_id"),
))


def table(name: str) -> Table:
    return Base.metadata.tables[name]


def level_table(level: str) -> Table:
    return table(LEVELS[level].table)


def required_dependents(level: str) -> List[ForeignKeyRef]:
    return [r for r in DEPENDENTS[level] if not r.nullable]


def nullable_dependents(level: str) -> List[ForeignKeyRef]:
    return [r for r in DEPENDENTS[level] if r.nullable]


def read_nodes(session: Session, level: str, parent_id: Optional[str] = None) -> List[StoreNode]:
    """Current store nodes of a level, optionally restricted to one parent, in id order."""
    spec = LEVELS[level]
    t = level_table(level)
    cols = [t.c.id, t.c.name, t.c.code]
    if spec.parent_column:
        cols.append(t.c[spec.parent_column])
    stmt = select(*cols)
    if spec.parent_column and parent_id is not None:
        stmt = stmt.where(t.c[spec.parent_column] == parent_id)
    rows = session.execute(stmt.order_by(t.c.id)).all()
    return [
        StoreNode(id=r[0], name=r[1], code=r[2], parent_id=(r[3] if spec.parent_column else None))
        for r in rows
    ]


def node_exists(session: Session, level: str, node_id: str) -> bool:
    t = level_table(level)
    return session.execute(select(t.c.id).where(t.c.id == node_id)).first() is not None


def repoint(session: Session, ref: ForeignKeyRef, old_id: str, new_id: str) -> int:
    t = table(ref.table)
    res = session.execute(update(t).where(t.c[ref.column] == old_id).values({ref.column: new_id}))
    return res.rowcount or 0


def null_out(session: Session, ref: ForeignKeyRef, condition) -> int:
    """Set ``ref.column`` to NULL on rows matching a condition over that column."""
    t = table(ref.table)
    col = t.c[ref.column]
    res = session.execute(update(t).where(col.is_not(None), condition(col)).values({ref.column: None}))
    return res.rowcount or 0


def delete_cascade(session: Session, ref: CascadeRef, condition) -> Dict[str, int]:
    """Delete rows of ``ref.table`` matching ``condition(column)``, dependents first.

    Returns deleted row counts per table.
    """
    t = table(ref.table)
    col = t.c[ref.column]
    counts: Dict[str, int] = {}
    doomed_ids = select(t.c.id).where(condition(col))
    for child in ref.children:
        for name, n in delete_cascade(session, child, lambda c, _ids=doomed_ids: c.in_(_ids)).items():
            counts[name] = counts.get(name, 0) + n
    res = session.execute(delete(t).where(condition(col)))
    counts[ref.table] = counts.get(ref.table, 0) + (res.rowcount or 0)
    return counts


def count_references(session: Session, ref: ForeignKeyRef, node_ids: Iterable[str]) -> int:
    ids = list(node_ids)
    if not ids:
        return 0
    t = table(ref.table)
    return int(session.execute(select(func.count()).select_from(t).where(t.c[ref.column].in_(ids))).scalar() or 0)
