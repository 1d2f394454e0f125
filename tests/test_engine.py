from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

from db.models import Lga, Member, State, Ward
from db.session import make_engine
from hierarchy.config import ReconcileConfig
from hierarchy.dependents import LOCAL_UNIT, REGION, SUBREGION
from hierarchy.engine import ReconciliationEngine, check_store
from hierarchy.errors import StoreUnavailable
from hierarchy.source import read_workbook


@pytest.fixture
def drifted_store(store):
    bayelsa = store.state("Bayelsa", code="NG006")
    store.state("Federal Capital Territory", code="FCT-OLD")
    ekeremor = store.lga(bayelsa, "Ekeremor", code="NG006003")
    north = store.lga(bayelsa, "Ekeremor North", code="LGA-NEW-3")
    aleibiri = store.ward(ekeremor, "Aleibiri", code="NG006003001")
    tamigbe = store.ward(north, "Tamigbe")
    member = store.member(tamigbe)
    store.commit()
    return {"aleibiri": aleibiri, "member": member, "ekeremor": ekeremor}


def test_full_run_converges(drifted_store, make_workbook, store, session):
    config = ReconcileConfig()
    source = read_workbook(make_workbook(), config)

    result = ReconciliationEngine(session, config).run(source)

    assert result.stats[REGION].renamed == 1
    assert result.stats[SUBREGION].merged == 1
    assert result.stats[SUBREGION].created == 2
    assert result.stats[LOCAL_UNIT].merged == 1
    assert result.stats[LOCAL_UNIT].created == 1
    assert result.anomalies == []
    assert store.count(State, State.name == "Federal Capital Territory", State.code == "NG015") == 1
    assert store.names(Lga) == ["Abaji", "Ekeremor", "Kolokuma/Opokuma"]
    assert store.names(Ward) == ["Aleibiri", "Kaiama"]
    assert store.value(Member.ward_id, drifted_store["member"]) == drifted_store["aleibiri"]
    assert result.report.totals == {REGION: 2, SUBREGION: 3, LOCAL_UNIT: 2}
    assert result.report.orphan_total() == 0
    assert result.report.ok


def test_second_run_is_a_noop(drifted_store, make_workbook, store, session):
    config = ReconcileConfig()
    source = read_workbook(make_workbook(), config)
    engine = ReconciliationEngine(session, config)

    first = engine.run(source)
    second = engine.run(source)

    assert first.changes() > 0
    assert second.changes() == 0
    assert second.report.totals == first.report.totals
    assert second.sweep.total() == 0


def test_unresolved_parent_does_not_abort(make_workbook, store, session):
    admin2 = [
        ("adm2_name", "adm2_pcode", "adm1_pcode"),
        ("Ekeremor", "NG006003", "NG006"),
        ("Nowhere", "NG099001", "NG099"),
    ]
    config = ReconcileConfig()
    source = read_workbook(make_workbook(admin2=admin2), config)

    result = ReconciliationEngine(session, config).run(source)

    assert [a.code for a in result.anomalies] == ["NG099001", "NG006004001"]
    assert store.names(Lga) == ["Ekeremor"]
    assert not result.report.ok


def test_unreachable_store(tmp_path):
    eng = make_engine(f"sqlite:///{(tmp_path / 'missing' / 'dir' / 'x.db').as_posix()}")
    session = sessionmaker(bind=eng)()
    try:
        with pytest.raises(StoreUnavailable):
            check_store(session)
    finally:
        session.close()
        eng.dispose()
