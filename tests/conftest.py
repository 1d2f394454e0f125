from __future__ import annotations

import itertools
import sys
from pathlib import Path
from typing import Optional

import pytest
from openpyxl import Workbook
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from db.models import (  # noqa: E402
    Base,
    Event,
    Incident,
    IncidentMedia,
    Lga,
    Member,
    PollingAgent,
    PollingUnit,
    PollingUnitResult,
    ResultSheet,
    State,
    Ward,
)
from db.session import make_engine  # noqa: E402

ADMIN1 = [("adm1_name", "adm1_pcode"), ("Bayelsa", "NG006"), ("FCT", "NG015")]
ADMIN2 = [
    ("adm2_name", "adm2_pcode", "adm1_pcode"),
    ("Ekeremor", "NG006003", "NG006"),
    ("Kolokuma/Opokuma", "NG006004", "NG006"),
    ("Abaji", "NG015001", "NG015"),
]
ADMIN3 = [
    ("adm3_name", "adm3_pcode", "adm2_pcode"),
    ("Aleibiri", "NG006003001", "NG006003"),
    ("Kaiama", "NG006004001", "NG006004"),
]


def write_workbook(path: Path, admin1=ADMIN1, admin2=ADMIN2, admin3=ADMIN3) -> Path:
    """Three-sheet boundary workbook; pass None to leave a sheet out."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in (("nga_admin1", admin1), ("nga_admin2", admin2), ("nga_admin3", admin3)):
        if rows is None:
            continue
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return path


@pytest.fixture
def make_workbook(tmp_path: Path):
    def _make(name: str = "boundaries.xlsx", **sheets) -> Path:
        return write_workbook(tmp_path / name, **sheets)
    return _make


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{(tmp_path / 'admin_hierarchy.db').as_posix()}"


@pytest.fixture
def engine(db_url: str):
    eng = make_engine(db_url)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Session:
    s = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    yield s
    s.close()


@pytest.fixture
def loose_session(db_url: str, engine) -> Session:
    """Same database with foreign keys unenforced, for staging broken rows."""
    eng = make_engine(db_url, enforce_foreign_keys=False)
    s = sessionmaker(bind=eng, autoflush=False, autocommit=False)()
    yield s
    s.close()
    eng.dispose()


class StoreBuilder:
    """Insert hierarchy and dependent rows; every helper returns the new id."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._seq = itertools.count(1)

    def _add(self, obj) -> str:
        self.session.add(obj)
        self.session.flush()
        return obj.id

    def state(self, name: str, code: Optional[str] = None) -> str:
        return self._add(State(name=name, code=code or f"ST-{name}"))

    def lga(self, state_id: str, name: str, code: Optional[str] = None) -> str:
        return self._add(Lga(state_id=state_id, name=name, code=code or f"LGA-{name}"))

    def ward(self, lga_id: str, name: str, code: Optional[str] = None) -> str:
        return self._add(Ward(lga_id=lga_id, name=name, code=code or f"WRD-{name}"))

    def member(self, ward_id: Optional[str] = None) -> str:
        return self._add(Member(member_code=f"M{next(self._seq):05d}", ward_id=ward_id))

    def event(self, state_id=None, lga_id=None, ward_id=None) -> str:
        return self._add(Event(title=f"event {next(self._seq)}", state_id=state_id, lga_id=lga_id, ward_id=ward_id))

    def polling_unit(self, ward_id: str, *, with_dependents: bool = False) -> str:
        n = next(self._seq)
        pu_id = self._add(PollingUnit(name=f"PU {n}", unit_code=f"PU{n:05d}", ward_id=ward_id))
        if with_dependents:
            self._add(PollingUnitResult(polling_unit_id=pu_id, party_code="APC", votes=10))
            incident_id = self._add(Incident(polling_unit_id=pu_id, description="late materials"))
            self._add(IncidentMedia(incident_id=incident_id, url="https://example.invalid/a.jpg"))
            self._add(PollingAgent(polling_unit_id=pu_id, agent_code=f"AG{n:05d}"))
            self._add(ResultSheet(polling_unit_id=pu_id, image_url="https://example.invalid/s.jpg"))
        return pu_id

    def commit(self) -> None:
        self.session.commit()

    def count(self, model, *where) -> int:
        stmt = select(func.count()).select_from(model)
        if where:
            stmt = stmt.where(*where)
        return int(self.session.execute(stmt).scalar() or 0)

    def exists(self, model, node_id: str) -> bool:
        return self.count(model, model.id == node_id) == 1

    def value(self, column, node_id: str):
        model = column.class_
        return self.session.execute(select(column).where(model.id == node_id)).scalar()

    def names(self, model, *where) -> list:
        stmt = select(model.name)
        if where:
            stmt = stmt.where(*where)
        return sorted(self.session.execute(stmt).scalars())


@pytest.fixture
def store(session: Session) -> StoreBuilder:
    return StoreBuilder(session)


@pytest.fixture
def loose_store(loose_session: Session) -> StoreBuilder:
    return StoreBuilder(loose_session)
