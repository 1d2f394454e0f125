"""First-time seeding from the nested state -> LGA -> ward document.

The document is JSON or YAML shaped like::

    nigeriaAdministrativeDivisions:
      states:
        - {id: NG001, name: Abia, region: South East, capital: Umuahia,
           lgas: [{id: NG001001, name: Aba North, totalWards: 11}, ...]}

An LGA may list its ``wards`` explicitly (``wardId`` + ``name``) or only give
``totalWards``, in which case wards are generated as "<LGA> Ward <n>".
Seeding is skipped entirely once any state exists; after that the
reconciliation run owns the hierarchy.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import Lga, State, Ward

from .config import load_yaml
from .dependents import LEVELS, LOCAL_UNIT, REGION, SUBREGION, level_table
from .errors import SourceFormatError
from .normalize import strict_key

_log = logging.getLogger(__name__)

CODE_PREFIXES = {REGION: "STA", SUBREGION: "LGA", LOCAL_UNIT: "WRD"}


class CodeSequence:
    """Hands out ``<PREFIX>-NEW-<n>`` codes for nodes that arrive without one.

    Start from :meth:`from_store` so numbering continues past codes an earlier
    run already issued.
    """

    def __init__(self, prefix: str, start: int = 0) -> None:
        self.prefix = prefix
        self.value = start

    def next(self) -> str:
        self.value += 1
        return f"{self.prefix}-NEW-{self.value}"

    @classmethod
    def from_store(cls, session: Session, level: str, prefix: Optional[str] = None) -> "CodeSequence":
        prefix = prefix or CODE_PREFIXES[level]
        t = level_table(level)
        pattern = re.compile(rf"^{re.escape(prefix)}-NEW-(\d+)$")
        codes = session.execute(select(t.c.code).where(t.c.code.like(f"{prefix}-NEW-%"))).scalars()
        start = 0
        for code in codes:
            m = pattern.match(code or "")
            if m:
                start = max(start, int(m.group(1)))
        return cls(prefix, start)


@dataclass
class SeedResult:
    states: int = 0
    lgas: int = 0
    wards: int = 0
    skipped: bool = False

    def as_dict(self) -> dict:
        return {"states": self.states, "lgas": self.lgas, "wards": self.wards, "skipped": self.skipped}


def load_divisions(path: Path) -> List[Mapping[str, Any]]:
    """Return the list of state entries from a divisions document."""
    path = Path(path)
    if not path.is_file():
        raise SourceFormatError(f"divisions document not found: {path}")
    doc = load_yaml(path)
    if isinstance(doc, Mapping) and "states" not in doc and len(doc) == 1:
        doc = next(iter(doc.values()))
    if not isinstance(doc, Mapping) or not isinstance(doc.get("states"), list):
        raise SourceFormatError(f"{path.name}: expected a 'states' list")
    return doc["states"]


def _text(entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    return "" if value is None else str(value).strip()


class DivisionSeeder:
    def __init__(self, session: Session, *, name_aliases: Optional[Mapping[str, str]] = None) -> None:
        self.session = session
        self.name_aliases = dict(name_aliases or {})
        self.codes = {level: CodeSequence.from_store(session, level) for level in CODE_PREFIXES}

    def seed(self, states: List[Mapping[str, Any]]) -> SeedResult:
        existing = self.session.execute(select(func.count()).select_from(level_table(REGION))).scalar() or 0
        if existing:
            _log.info("Administrative data already exists (%d states); skipping seeding", existing)
            return SeedResult(states=int(existing), skipped=True)

        result = SeedResult()
        try:
            for entry in states:
                self._seed_state(entry, result)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        _log.info("Seeded %d states, %d LGAs, %d wards", result.states, result.lgas, result.wards)
        return result

    def _seed_state(self, entry: Mapping[str, Any], result: SeedResult) -> None:
        name = _text(entry, "name")
        if not name:
            raise SourceFormatError(f"state entry without a name: {dict(entry)!r}")
        name = self.name_aliases.get(name, name)
        state = State(
            name=name,
            code=_text(entry, "id") or self.codes[REGION].next(),
            region=_text(entry, "region") or None,
            capital=_text(entry, "capital") or None,
        )
        self.session.add(state)
        self.session.flush()
        result.states += 1

        seen: Dict[str, str] = {}
        for lga_entry in entry.get("lgas") or []:
            lga_name = _text(lga_entry, "name")
            if not lga_name:
                _log.warning("%s: LGA entry without a name skipped", state.name)
                continue
            code = _text(lga_entry, "id") or self.codes[SUBREGION].next()
            if strict_key(lga_name) in seen or code in seen.values():
                _log.warning("%s: duplicate LGA %r (%s) skipped", state.name, lga_name, code)
                continue
            seen[strict_key(lga_name)] = code
            lga = Lga(state_id=state.id, name=lga_name, code=code)
            self.session.add(lga)
            self.session.flush()
            result.lgas += 1
            result.wards += self._seed_wards(lga, lga_entry)

    def _seed_wards(self, lga: Lga, entry: Mapping[str, Any]) -> int:
        explicit = entry.get("wards") or []
        rows = []
        if explicit:
            names = set()
            for i, w in enumerate(explicit, start=1):
                name = _text(w, "name")
                if not name or name in names:
                    _log.warning("%s: %s ward entry %d skipped", lga.name, "duplicate" if name else "unnamed", i)
                    continue
                names.add(name)
                rows.append((name, _text(w, "wardId") or self.codes[LOCAL_UNIT].next(), i))
        else:
            total = int(entry.get("totalWards") or 0)
            rows = [(f"{lga.name} Ward {n}", f"{lga.code}{n:02d}", n) for n in range(1, total + 1)]

        codes = set()
        count = 0
        for name, code, number in rows:
            if code in codes:
                _log.warning("%s: duplicate %s code %s skipped", lga.name, LEVELS[LOCAL_UNIT].label, code)
                continue
            codes.add(code)
            self.session.add(Ward(lga_id=lga.id, name=name, code=code, ward_number=number))
            count += 1
        self.session.flush()
        return count
