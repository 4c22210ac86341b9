"""Data access layer for committee records"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from credit_committee.domain.exceptions import DossierNotFoundError
from credit_committee.domain.models import DossierEvaluation
from credit_committee.infrastructure.database.models import AuditEvent, DossierEvaluationRecord, SmartScoreSnapshot


class EvaluationRepository:
    """Repository for intake evaluations"""

    def __init__(self, db: Session):
        self.db = db

    def create_evaluation(self, evaluation: DossierEvaluation) -> DossierEvaluationRecord:
        """Persist the decision draft and its inputs"""
        record = DossierEvaluationRecord(
            dossier_id=evaluation.dossier_id,
            verdict=evaluation.draft.verdict.value,
            confidence=evaluation.draft.confidence,
            motivation=evaluation.draft.motivation,
            completeness_pct=evaluation.completeness.percentage,
            ltv=evaluation.ltv,
            risk_level=evaluation.risk_level.value,
            conditions=[
                {"id": c.id, "text": c.text, "source": c.source.value, "met": c.met}
                for c in evaluation.conditions
            ],
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def latest_evaluation(self, dossier_id: str) -> Optional[DossierEvaluationRecord]:
        return (
            self.db.query(DossierEvaluationRecord)
            .filter(DossierEvaluationRecord.dossier_id == dossier_id)
            .order_by(DossierEvaluationRecord.created_at.desc())
            .first()
        )


class SmartScoreRepository:
    """Repository for SmartScore snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def create_snapshot(
        self,
        dossier_id: str,
        profile: str,
        score: int,
        grade: str,
        verdict: str,
        result: Dict[str, Any],
    ) -> SmartScoreSnapshot:
        """Persist a SmartScore result; `result` is the JSON-ready response body"""
        snapshot = SmartScoreSnapshot(
            dossier_id=dossier_id,
            profile=profile,
            score=score,
            grade=grade,
            verdict=verdict,
            result=result,
        )
        self.db.add(snapshot)
        self.db.flush()
        return snapshot

    def latest_snapshot(self, dossier_id: str) -> Optional[SmartScoreSnapshot]:
        return (
            self.db.query(SmartScoreSnapshot)
            .filter(SmartScoreSnapshot.dossier_id == dossier_id)
            .order_by(SmartScoreSnapshot.created_at.desc())
            .first()
        )


class AuditRepository:
    """Repository for the append-only audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def append(self, dossier_id: str, kind: str, message: str) -> AuditEvent:
        event = AuditEvent(dossier_id=dossier_id, kind=kind, message=message)
        self.db.add(event)
        self.db.flush()
        return event

    def list_for_dossier(self, dossier_id: str, limit: int = 20) -> List[AuditEvent]:
        """
        Most recent audit events first.

        Raises:
            DossierNotFoundError: nothing was ever recorded for this dossier
        """
        events = (
            self.db.query(AuditEvent)
            .filter(AuditEvent.dossier_id == dossier_id)
            .order_by(AuditEvent.created_at.desc())
            .limit(limit)
            .all()
        )
        if not events:
            raise DossierNotFoundError(dossier_id)
        return events
