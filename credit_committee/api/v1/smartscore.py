"""POST /v1/smartscore - multi-pillar SmartScore over a raw operation payload"""

import logging
import time
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from credit_committee.adapters.enrichment import has_enriched_data, normalize_operation
from credit_committee.api.dependencies import get_request_id
from credit_committee.api.v1.schemas import SmartScoreResponse
from credit_committee.domain.alerts import compute_alerts
from credit_committee.domain.exceptions import UnknownProfileError
from credit_committee.domain.smartscore import build_verdict_explanation, compute_smartscore
from credit_committee.infrastructure.database.repositories import AuditRepository, SmartScoreRepository
from credit_committee.infrastructure.database.session import get_db
from credit_committee.infrastructure.observability.logging import log_smartscore
from credit_committee.infrastructure.observability.metrics import record_smartscore

router = APIRouter()


@router.post("/smartscore", response_model=SmartScoreResponse)
def score_operation(
    request: Request,
    payload: Dict[str, Any] = Body(..., description="Operation summary, raw or enriched"),
    as_of: Optional[date] = Query(None, description="Reference date for the planning pillar"),
    db: Session = Depends(get_db),
):
    """
    Score an operation summary.

    The payload may carry risk, DVF and market blocks in any shape the enrichment
    services produce; it is normalized before scoring. When it names a dossier the
    result is stored as a snapshot with an audit event.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        operation = normalize_operation(payload)
        result = compute_smartscore(operation, as_of=as_of)

        response = SmartScoreResponse.model_validate(
            {
                **asdict(result),
                "dossier_id": operation.dossier_id,
                "explanation": build_verdict_explanation(result),
                "alerts": [asdict(alert) for alert in compute_alerts(operation, result)],
                "has_enriched_data": has_enriched_data(operation),
            }
        )

        if operation.dossier_id:
            SmartScoreRepository(db).create_snapshot(
                dossier_id=operation.dossier_id,
                profile=result.profile.value,
                score=result.score,
                grade=result.grade.value,
                verdict=result.verdict.value,
                result=response.model_dump(mode="json"),
            )
            AuditRepository(db).append(
                dossier_id=operation.dossier_id,
                kind="smartscore",
                message=f"SmartScore {result.score}/100 ({result.grade.value}) — {result.verdict.value}",
            )
            db.commit()

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        record_smartscore(result.profile.value, result.grade.value, bool(result.blockers))
        log_smartscore(
            request_id,
            operation.dossier_id,
            result.profile.value,
            result.score,
            result.grade.value,
            len(result.blockers),
            duration_ms,
        )

        return response

    except UnknownProfileError as e:
        db.rollback()
        logging.warning(f"Unknown profile: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
