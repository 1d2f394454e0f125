from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


# =========================
# Administrative hierarchy
# =========================

class State(Base):
    """Region level of the hierarchy (a state, or the FCT)."""

    __tablename__ = "states"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(256), nullable=False, unique=True, index=True)
    code = Column(String(64), nullable=False, unique=True, index=True)
    region = Column(String(64), nullable=True)  # geopolitical zone, informational only
    capital = Column(String(128), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    lgas = relationship("Lga", back_populates="state")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<State {self.code}:{self.name}>"


class Lga(Base):
    """Sub-region level: a Local Government Area owned by a State."""

    __tablename__ = "lgas"
    __table_args__ = (
        UniqueConstraint("state_id", "name", name="uq_lga_state_name"),
        UniqueConstraint("state_id", "code", name="uq_lga_state_code"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=False, index=True)
    name = Column(String(256), nullable=False, index=True)
    code = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    state = relationship("State", back_populates="lgas")
    wards = relationship("Ward", back_populates="lga")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Lga {self.code}:{self.name} state={self.state_id}>"


class Ward(Base):
    """Local-unit level: a ward owned by an LGA."""

    __tablename__ = "wards"
    __table_args__ = (
        UniqueConstraint("lga_id", "name", name="uq_ward_lga_name"),
        UniqueConstraint("lga_id", "code", name="uq_ward_lga_code"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=False, index=True)
    name = Column(String(256), nullable=False, index=True)
    code = Column(String(64), nullable=False, index=True)
    ward_number = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    lga = relationship("Lga", back_populates="wards")

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Ward {self.code}:{self.name} lga={self.lga_id}>"


# =========================
# Dependents of the hierarchy
# =========================
# Only the columns the reconciliation engine touches (plus a label for
# reports) are modelled; the rest of each table belongs to the web app.

class Member(Base):
    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=_new_id)
    member_code = Column(String(64), nullable=False, unique=True)
    full_name = Column(String(256), nullable=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<Member {self.member_code} ward={self.ward_id}>"


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(256), nullable=False)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=True, index=True)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=True, index=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class NewsPost(Base):
    __tablename__ = "news_posts"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(256), nullable=False)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=True, index=True)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=True, index=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class MicroTask(Base):
    __tablename__ = "micro_tasks"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(256), nullable=False)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=True, index=True)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=True, index=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class VolunteerTask(Base):
    __tablename__ = "volunteer_tasks"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(256), nullable=False)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=True, index=True)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=True, index=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class IssueCampaign(Base):
    __tablename__ = "issue_campaigns"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(256), nullable=False)
    state_id = Column(String(36), ForeignKey("states.id"), nullable=True, index=True)
    lga_id = Column(String(36), ForeignKey("lgas.id"), nullable=True, index=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


# =========================
# Leaf voting locations
# =========================

class PollingUnit(Base):
    __tablename__ = "polling_units"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(256), nullable=False)
    unit_code = Column(String(64), nullable=False, unique=True)
    ward_id = Column(String(36), ForeignKey("wards.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"<PollingUnit {self.unit_code} ward={self.ward_id}>"


class PollingUnitResult(Base):
    __tablename__ = "polling_unit_results"

    id = Column(String(36), primary_key=True, default=_new_id)
    polling_unit_id = Column(String(36), ForeignKey("polling_units.id"), nullable=False, index=True)
    party_code = Column(String(32), nullable=True)
    votes = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=_new_id)
    polling_unit_id = Column(String(36), ForeignKey("polling_units.id"), nullable=True, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class IncidentMedia(Base):
    __tablename__ = "incident_media"

    id = Column(String(36), primary_key=True, default=_new_id)
    incident_id = Column(String(36), ForeignKey("incidents.id"), nullable=False, index=True)
    url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class PollingAgent(Base):
    __tablename__ = "polling_agents"

    id = Column(String(36), primary_key=True, default=_new_id)
    polling_unit_id = Column(String(36), ForeignKey("polling_units.id"), nullable=False, index=True)
    member_id = Column(String(36), ForeignKey("members.id"), nullable=True, index=True)
    agent_code = Column(String(64), nullable=False, unique=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ResultSheet(Base):
    __tablename__ = "result_sheets"

    id = Column(String(36), primary_key=True, default=_new_id)
    polling_unit_id = Column(String(36), ForeignKey("polling_units.id"), nullable=True, index=True)
    image_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
