"""GET /v1/dossiers/{dossier_id}/history - latest draft, latest SmartScore and audit trail"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from credit_committee.api.v1.schemas import (
    AuditEventSchema,
    ConditionSchema,
    EvaluationHistoryItem,
    HistoryResponse,
    SmartScoreHistoryItem,
)
from credit_committee.config import settings
from credit_committee.domain.exceptions import DossierNotFoundError
from credit_committee.infrastructure.database.repositories import (
    AuditRepository,
    EvaluationRepository,
    SmartScoreRepository,
)
from credit_committee.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/dossiers/{dossier_id}/history", response_model=HistoryResponse)
def get_dossier_history(dossier_id: str, db: Session = Depends(get_db)):
    """
    Retrieve what the engine recorded for a dossier.

    Returns:
        Latest decision draft and SmartScore (if any) plus the most recent audit events
    """
    try:
        events = AuditRepository(db).list_for_dossier(dossier_id, limit=settings.history_limit)
    except DossierNotFoundError:
        raise HTTPException(status_code=404, detail="Dossier not found")

    evaluation = EvaluationRepository(db).latest_evaluation(dossier_id)
    snapshot = SmartScoreRepository(db).latest_snapshot(dossier_id)

    latest_evaluation = None
    if evaluation is not None:
        latest_evaluation = EvaluationHistoryItem(
            verdict=evaluation.verdict,
            confidence=evaluation.confidence,
            motivation=evaluation.motivation,
            completeness_pct=evaluation.completeness_pct,
            ltv=evaluation.ltv,
            risk_level=evaluation.risk_level,
            conditions=[ConditionSchema(**c) for c in evaluation.conditions],
            created_at=evaluation.created_at.isoformat(),
        )

    latest_smartscore = None
    if snapshot is not None:
        latest_smartscore = SmartScoreHistoryItem(
            profile=snapshot.profile,
            score=snapshot.score,
            grade=snapshot.grade,
            verdict=snapshot.verdict,
            created_at=snapshot.created_at.isoformat(),
        )

    return HistoryResponse(
        dossier_id=dossier_id,
        latest_evaluation=latest_evaluation,
        latest_smartscore=latest_smartscore,
        events=[
            AuditEventSchema(kind=e.kind, message=e.message, created_at=e.created_at.isoformat())
            for e in events
        ],
    )
