"""POST /v1/dossiers/evaluate - intake evaluation and decision draft"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from credit_committee.api.dependencies import get_condition_sequence, get_request_id
from credit_committee.api.v1.schemas import DossierRequest, EvaluationResponse
from credit_committee.config import settings
from credit_committee.domain.intake import ConditionSequence, evaluate_dossier
from credit_committee.infrastructure.database.repositories import AuditRepository, EvaluationRepository
from credit_committee.infrastructure.database.session import get_db
from credit_committee.infrastructure.observability.logging import log_dossier_evaluation
from credit_committee.infrastructure.observability.metrics import record_decision_draft

router = APIRouter()


@router.post("/dossiers/evaluate", response_model=EvaluationResponse)
def evaluate(
    request_body: DossierRequest,
    request: Request,
    db: Session = Depends(get_db),
    sequence: ConditionSequence = Depends(get_condition_sequence),
):
    """
    Run the intake pipeline on the dossier as submitted.

    Flow:
    1. Completeness against the project-type document catalog
    2. LTV, risk level and suggested conditions
    3. Decision draft
    4. Persist the draft and an audit event
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        dossier = request_body.to_domain(settings.default_project_type)
        evaluation = evaluate_dossier(dossier, sequence)

        EvaluationRepository(db).create_evaluation(evaluation)
        AuditRepository(db).append(
            dossier_id=dossier.id,
            kind="evaluation",
            message=(
                f"Projet de décision {evaluation.draft.verdict.value} "
                f"(complétude {evaluation.completeness.percentage}%, risque {evaluation.risk_level.value})"
            ),
        )
        db.commit()

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        record_decision_draft(evaluation.draft.verdict.value)
        log_dossier_evaluation(
            request_id,
            dossier.id,
            evaluation.draft.verdict.value,
            evaluation.completeness.percentage,
            evaluation.risk_level.value,
            duration_ms,
        )

        return EvaluationResponse.model_validate(evaluation)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
