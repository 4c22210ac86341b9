"""Pydantic schemas for API request/response validation"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from credit_committee.domain.alerts import AlertSeverity
from credit_committee.domain.matrix import DominantRisk, Quadrant
from credit_committee.domain.models import (
    Condition,
    ConditionSource,
    Document,
    DocumentStatus,
    Dossier,
    Guarantee,
    ProjectType,
    RiskLevel,
    Verdict,
)
from credit_committee.domain.operation import BorrowerProfile, MissingSeverity
from credit_committee.domain.profiles import PillarKey
from credit_committee.domain.report import (
    BpeSnapshot,
    DvfSnapshot,
    InseeSnapshot,
    MarketInsight,
    MarketStudy,
    ReportInput,
    ReportKpis,
    ReportPillar,
    ReportSmartScore,
    TransportSnapshot,
)
from credit_committee.domain.scenarios import ScenarioKey
from credit_committee.domain.smartscore import Grade, ScoreVerdict
from credit_committee.domain.stress import StressCase


class ResponseModel(BaseModel):
    """Response schemas are filled straight from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


# ════════════════════════════════════════════════════════════════════
# Dossier intake
# ════════════════════════════════════════════════════════════════════


class DocumentSchema(ResponseModel):
    id: str = Field(..., min_length=1)
    label: str
    category: str = ""
    status: DocumentStatus = DocumentStatus.PENDING


class GuaranteeSchema(ResponseModel):
    id: str = Field(..., min_length=1)
    type: str
    label: str = ""
    amount: float


class ConditionSchema(ResponseModel):
    id: str
    text: str
    source: ConditionSource = ConditionSource.MANUAL
    met: bool = False


class DossierRequest(BaseModel):
    """Request body for POST /v1/dossiers/evaluate"""

    id: str = Field(..., min_length=1, description="Dossier identifier")
    name: str = Field(..., description="Programme name")
    project_type: str = Field("baseline", description="baseline | marchand | promotion")
    requested_amount: float = Field(0.0, description="Requested financing in EUR")
    project_value: float = Field(0.0, description="Project value in EUR")
    documents: List[DocumentSchema] = Field(default_factory=list)
    guarantees: List[GuaranteeSchema] = Field(default_factory=list)
    conditions: List[ConditionSchema] = Field(default_factory=list)

    def to_domain(self, default_project_type: str) -> Dossier:
        try:
            project_type = ProjectType(self.project_type)
        except ValueError:
            project_type = ProjectType(default_project_type)
        return Dossier(
            id=self.id,
            name=self.name,
            project_type=project_type,
            requested_amount=self.requested_amount,
            project_value=self.project_value,
            documents=[Document(d.id, d.label, d.category, d.status) for d in self.documents],
            guarantees=[Guarantee(g.id, g.type, g.label, g.amount) for g in self.guarantees],
            conditions=[Condition(c.id, c.text, c.source, c.met) for c in self.conditions],
        )


class CompletenessSchema(ResponseModel):
    total: int
    provided: int
    percentage: int
    missing: List[str]


class DecisionDraftSchema(ResponseModel):
    verdict: Verdict
    confidence: float
    motivation: str
    suggested_conditions: List[ConditionSchema]


class EvaluationResponse(ResponseModel):
    """Response for POST /v1/dossiers/evaluate"""

    dossier_id: str
    completeness: CompletenessSchema
    ltv: Optional[float] = None
    risk_level: RiskLevel
    conditions: List[ConditionSchema]
    draft: DecisionDraftSchema


# ════════════════════════════════════════════════════════════════════
# SmartScore
# ════════════════════════════════════════════════════════════════════


class PillarResultSchema(ResponseModel):
    key: PillarKey
    label: str
    max_points: int
    raw_score: float
    points: int
    has_data: bool
    reasons: List[str]
    actions: List[str]


class MissingPenaltySchema(ResponseModel):
    key: str
    label: str
    points: int
    severity: MissingSeverity


class SmartScoreDriverSchema(ResponseModel):
    label: str
    direction: str
    impact: str


class AlertSchema(ResponseModel):
    id: str
    severity: AlertSeverity
    title: str
    message: str
    pillar: Optional[PillarKey] = None


class SmartScoreResponse(ResponseModel):
    """Response for POST /v1/smartscore"""

    dossier_id: Optional[str] = None
    score: int
    grade: Grade
    verdict: ScoreVerdict
    profile: BorrowerProfile
    pillars: List[PillarResultSchema]
    drivers: List[SmartScoreDriverSchema]
    recommendations: List[str]
    missing_penalties: List[MissingPenaltySchema]
    total_missing_penalty: int
    blockers: List[str]
    computed_at: str
    explanation: str
    alerts: List[AlertSchema]
    has_enriched_data: bool


# ════════════════════════════════════════════════════════════════════
# Committee pack
# ════════════════════════════════════════════════════════════════════


class DvfSnapshotSchema(BaseModel):
    price_m2_median: Optional[float] = None
    transactions: Optional[float] = None
    evolution: Optional[float] = None


class InseeSnapshotSchema(BaseModel):
    population: Optional[float] = None
    revenue_median: Optional[float] = None
    unemployment_rate: Optional[float] = None
    population_density: Optional[float] = None


class BpeSnapshotSchema(BaseModel):
    facilities: Optional[float] = None


class TransportSnapshotSchema(BaseModel):
    stations: Optional[float] = None
    distance_to_centre: Optional[float] = None


class MarketInsightSchema(BaseModel):
    label: str
    value: Union[float, str]
    sentiment: Literal["positive", "negative", "neutral"] = "neutral"


class MarketStudySchema(BaseModel):
    commune: Optional[str] = None
    department: Optional[str] = None
    dvf: DvfSnapshotSchema = Field(default_factory=DvfSnapshotSchema)
    insee: InseeSnapshotSchema = Field(default_factory=InseeSnapshotSchema)
    bpe: BpeSnapshotSchema = Field(default_factory=BpeSnapshotSchema)
    transport: TransportSnapshotSchema = Field(default_factory=TransportSnapshotSchema)
    insights: List[MarketInsightSchema] = Field(default_factory=list)


class ReportPillarSchema(BaseModel):
    id: str
    label: str
    score: float


class ReportSmartScoreSchema(BaseModel):
    score: float
    verdict: str
    pillars: List[ReportPillarSchema] = Field(default_factory=list)


class ReportKpisSchema(BaseModel):
    ltv: Optional[float] = Field(None, description="Loan-to-value in %")
    dscr: Optional[float] = None
    annual_rent: Optional[float] = None
    total_cost: Optional[float] = None
    gross_margin: Optional[float] = Field(None, description="Gross margin in %")
    debt_ratio: Optional[float] = Field(None, description="Debt ratio in %")


class ReportInputRequest(BaseModel):
    """Request body for POST /v1/committee/pack"""

    programme_name: str = Field(..., min_length=1)
    address: Optional[str] = None
    market_study: Optional[MarketStudySchema] = None
    smartscore: Optional[ReportSmartScoreSchema] = None
    kpis: ReportKpisSchema = Field(default_factory=ReportKpisSchema)
    missing: List[str] = Field(default_factory=list)

    def to_domain(self) -> ReportInput:
        study = None
        if self.market_study is not None:
            m = self.market_study
            study = MarketStudy(
                commune=m.commune,
                department=m.department,
                dvf=DvfSnapshot(**m.dvf.model_dump()),
                insee=InseeSnapshot(**m.insee.model_dump()),
                bpe=BpeSnapshot(**m.bpe.model_dump()),
                transport=TransportSnapshot(**m.transport.model_dump()),
                insights=[MarketInsight(i.label, i.value, i.sentiment) for i in m.insights],
            )
        smartscore = None
        if self.smartscore is not None:
            smartscore = ReportSmartScore(
                score=self.smartscore.score,
                verdict=self.smartscore.verdict,
                pillars=[ReportPillar(p.id, p.label, p.score) for p in self.smartscore.pillars],
            )
        return ReportInput(
            programme_name=self.programme_name,
            address=self.address,
            market_study=study,
            smartscore=smartscore,
            kpis=ReportKpis(**self.kpis.model_dump()),
            missing=list(self.missing),
        )


class PresentationSectionSchema(ResponseModel):
    title: str
    paragraphs: List[str]


class CommitteePresentationSchema(ResponseModel):
    executive_summary: str
    sections: List[PresentationSectionSchema]
    decision_line: str
    conditions: List[str]


class DecisionScenarioSchema(ResponseModel):
    key: ScenarioKey
    label: str
    decision: str
    confidence: int
    pros: List[str]
    cons: List[str]
    conditions: List[str]
    targets: List[str]


class AcceptanceDriverSchema(ResponseModel):
    label: str
    impact: int
    detail: Optional[str] = None


class AcceptanceProbabilitySchema(ResponseModel):
    score: int
    drivers: List[AcceptanceDriverSchema]


class RiskReturnMatrixSchema(ResponseModel):
    risk_score: int
    return_score: int
    quadrant: Quadrant
    dominant_risk: DominantRisk
    dominant_risk_label: str
    commentary: str


class StressTestCaseSchema(ResponseModel):
    key: StressCase
    label: str
    dscr: Optional[float] = None
    ltv: Optional[float] = None
    yield_pct: Optional[float] = None
    acceptance_score: Optional[int] = None
    notes: List[str]


class StressSummarySchema(ResponseModel):
    worst_case_key: StressCase
    worst_dscr: Optional[float] = None
    worst_acceptance: Optional[int] = None
    key_findings: List[str]


class StressTestPackSchema(ResponseModel):
    base: StressTestCaseSchema
    cases: List[StressTestCaseSchema]
    summary: StressSummarySchema


class CommitteePackResponse(ResponseModel):
    """Response for POST /v1/committee/pack"""

    presentation: CommitteePresentationSchema
    scenarios: List[DecisionScenarioSchema]
    acceptance: AcceptanceProbabilitySchema
    matrix: RiskReturnMatrixSchema
    stress: StressTestPackSchema


# ════════════════════════════════════════════════════════════════════
# History
# ════════════════════════════════════════════════════════════════════


class EvaluationHistoryItem(BaseModel):
    verdict: Verdict
    confidence: float
    motivation: str
    completeness_pct: int
    ltv: Optional[float] = None
    risk_level: RiskLevel
    conditions: List[ConditionSchema]
    created_at: str


class SmartScoreHistoryItem(BaseModel):
    profile: str
    score: int
    grade: str
    verdict: str
    created_at: str


class AuditEventSchema(BaseModel):
    kind: str
    message: str
    created_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/dossiers/{dossier_id}/history"""

    dossier_id: str
    latest_evaluation: Optional[EvaluationHistoryItem] = None
    latest_smartscore: Optional[SmartScoreHistoryItem] = None
    events: List[AuditEventSchema]
