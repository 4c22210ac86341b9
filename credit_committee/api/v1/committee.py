"""POST /v1/committee/pack - committee memo, scenarios, acceptance, matrix and stress tests"""

import logging
import time

from fastapi import APIRouter, HTTPException, Request

from credit_committee.api.dependencies import get_request_id
from credit_committee.api.v1.schemas import (
    AcceptanceProbabilitySchema,
    CommitteePackResponse,
    CommitteePresentationSchema,
    DecisionScenarioSchema,
    ReportInputRequest,
    RiskReturnMatrixSchema,
    StressTestPackSchema,
)
from credit_committee.domain.acceptance import build_acceptance_probability
from credit_committee.domain.matrix import build_risk_return_matrix
from credit_committee.domain.narrative import build_committee_presentation
from credit_committee.domain.scenarios import build_decision_scenarios
from credit_committee.domain.stress import build_stress_tests
from credit_committee.infrastructure.observability.logging import log_committee_pack
from credit_committee.infrastructure.observability.metrics import record_stress_pack

router = APIRouter()


@router.post("/committee/pack", response_model=CommitteePackResponse)
def build_pack(request_body: ReportInputRequest, request: Request):
    """
    Build everything the committee reads for one dossier.

    Every builder is pure and reads the same report input; nothing is persisted.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        report = request_body.to_domain()

        presentation = build_committee_presentation(report)
        scenarios = build_decision_scenarios(report)
        acceptance = build_acceptance_probability(report)
        matrix = build_risk_return_matrix(report)
        stress = build_stress_tests(report)

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        record_stress_pack(stress.summary.worst_case_key.value)
        log_committee_pack(
            request_id,
            report.programme_name,
            acceptance.score,
            matrix.quadrant.value,
            stress.summary.worst_case_key.value,
            duration_ms,
        )

        return CommitteePackResponse(
            presentation=CommitteePresentationSchema.model_validate(presentation),
            scenarios=[DecisionScenarioSchema.model_validate(s) for s in scenarios],
            acceptance=AcceptanceProbabilitySchema.model_validate(acceptance),
            matrix=RiskReturnMatrixSchema.model_validate(matrix),
            stress=StressTestPackSchema.model_validate(stress),
        )

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
