"""SQLAlchemy ORM models for committee evaluations, SmartScore snapshots and the audit trail"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, Text, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DossierEvaluationRecord(Base):
    """Last decision draft computed for a dossier, one row per evaluation"""

    __tablename__ = "dossier_evaluation"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dossier_id = Column(Text, nullable=False, index=True)
    verdict = Column(Text, nullable=False)
    confidence = Column(Float, nullable=False)
    motivation = Column(Text, nullable=False)
    completeness_pct = Column(Integer, nullable=False)
    ltv = Column(Float, nullable=True)  # ratio, NULL when indeterminate
    risk_level = Column(Text, nullable=False)
    conditions = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)


class SmartScoreSnapshot(Base):
    """SmartScore result stored alongside the dossier"""

    __tablename__ = "smartscore_snapshot"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dossier_id = Column(Text, nullable=False, index=True)
    profile = Column(Text, nullable=False)
    score = Column(Integer, nullable=False)
    grade = Column(Text, nullable=False)
    verdict = Column(Text, nullable=False)
    result = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)


class AuditEvent(Base):
    """Human-readable audit trail entry"""

    __tablename__ = "audit_event"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    dossier_id = Column(Text, nullable=False, index=True)
    kind = Column(Text, nullable=False)  # evaluation | smartscore
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
