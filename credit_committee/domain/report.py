"""Report input - the flattened committee-memo projection shared by the committee builders"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from credit_committee.domain.numeric import clamp, finite_number, guarded_number, round_half_up
from credit_committee.domain.operation import OperationSummary
from credit_committee.domain.smartscore import SmartScoreResult, clean_missing

WEAK_PILLAR_SCORE = 40
STRONG_PILLAR_SCORE = 70


@dataclass
class DvfSnapshot:
    price_m2_median: Optional[float] = None
    transactions: Optional[float] = None
    evolution: Optional[float] = None  # %


@dataclass
class InseeSnapshot:
    population: Optional[float] = None
    revenue_median: Optional[float] = None
    unemployment_rate: Optional[float] = None
    population_density: Optional[float] = None


@dataclass
class BpeSnapshot:
    facilities: Optional[float] = None


@dataclass
class TransportSnapshot:
    stations: Optional[float] = None
    distance_to_centre: Optional[float] = None


@dataclass
class MarketInsight:
    label: str
    value: Union[str, float]
    sentiment: str = "neutral"  # positive | negative | neutral


@dataclass
class MarketStudy:
    commune: Optional[str] = None
    department: Optional[str] = None
    dvf: DvfSnapshot = field(default_factory=DvfSnapshot)
    insee: InseeSnapshot = field(default_factory=InseeSnapshot)
    bpe: BpeSnapshot = field(default_factory=BpeSnapshot)
    transport: TransportSnapshot = field(default_factory=TransportSnapshot)
    insights: List[MarketInsight] = field(default_factory=list)


@dataclass
class ReportPillar:
    id: str
    label: str
    score: float


@dataclass
class ReportSmartScore:
    score: float
    verdict: str
    pillars: List[ReportPillar] = field(default_factory=list)


@dataclass
class ReportKpis:
    ltv: Optional[float] = None  # %
    dscr: Optional[float] = None
    annual_rent: Optional[float] = None
    total_cost: Optional[float] = None
    gross_margin: Optional[float] = None  # %
    debt_ratio: Optional[float] = None  # %


@dataclass
class ReportInput:
    programme_name: str
    address: Optional[str] = None
    market_study: Optional[MarketStudy] = None
    smartscore: Optional[ReportSmartScore] = None
    kpis: ReportKpis = field(default_factory=ReportKpis)
    missing: List[str] = field(default_factory=list)

    @property
    def dscr(self) -> Optional[float]:
        return finite_number(self.kpis.dscr)

    @property
    def ltv(self) -> Optional[float]:
        return finite_number(self.kpis.ltv)

    @property
    def margin(self) -> Optional[float]:
        return finite_number(self.kpis.gross_margin)

    @property
    def smartscore_value(self) -> Optional[float]:
        return finite_number(self.smartscore.score) if self.smartscore else None


def yield_from(annual_rent: Optional[float], total_cost: Optional[float]) -> Optional[float]:
    """Gross yield in %, None (never 0) when either side is not a positive amount."""
    rent = guarded_number(annual_rent)
    cost = guarded_number(total_cost)
    if rent is None or cost is None:
        return None
    return rent / cost * 100


def gross_yield(report: ReportInput) -> Optional[float]:
    return yield_from(report.kpis.annual_rent, report.kpis.total_cost)


def market_global_score(report: ReportInput) -> Optional[int]:
    """Insight-sentiment score: round(((pos - 0.7 * neg) / total) * 100 + 50), clamped to [0, 100]."""
    if report.market_study is None:
        return None
    insights = report.market_study.insights
    if not insights:
        return None
    positives = sum(1 for i in insights if i.sentiment == "positive")
    negatives = sum(1 for i in insights if i.sentiment == "negative")
    return int(clamp(round_half_up((positives - negatives * 0.7) / len(insights) * 100 + 50), 0, 100))


def weak_pillars(report: ReportInput) -> List[str]:
    if report.smartscore is None:
        return []
    return [p.label for p in report.smartscore.pillars if p.score < WEAK_PILLAR_SCORE]


def strong_pillars(report: ReportInput) -> List[str]:
    if report.smartscore is None:
        return []
    return [p.label for p in report.smartscore.pillars if p.score >= STRONG_PILLAR_SCORE]


def _market_study_from_operation(operation: OperationSummary) -> Optional[MarketStudy]:
    market = operation.market
    dvf = operation.dvf
    if market is None and dvf is None:
        return None

    stats = dvf.stats if dvf else None
    commune = market.commune if market else None

    def first(*values):
        for value in values:
            if value is not None:
                return value
        return None

    return MarketStudy(
        commune=commune.name if commune else None,
        department=commune.department if commune else None,
        dvf=DvfSnapshot(
            price_m2_median=first(stats.price_median_eur_m2 if stats else None, market.price_per_sqm if market else None),
            transactions=first(stats.transactions_count if stats else None, market.comps_count if market else None),
            evolution=first(stats.evolution_pct if stats else None, market.evolution_pct if market else None),
        ),
        insee=InseeSnapshot(
            population=commune.population if commune else None,
            revenue_median=market.revenue_median if market else None,
            population_density=commune.density if commune else None,
        ),
    )


def build_report_input(
    name: str,
    operation: OperationSummary,
    smartscore: Optional[SmartScoreResult],
    market_study: Optional[MarketStudy] = None,
    address: Optional[str] = None,
) -> ReportInput:
    """
    Project an operation summary and its SmartScore into the committee report shape.

    KPIs are carried in percent where the operation stores percentages (LTV, margin,
    debt ratio). Missing items are the cleaned missing-data labels.
    """
    kpis = operation.kpis
    budget = operation.budget
    revenues = operation.revenues

    report_smartscore = None
    if smartscore is not None:
        report_smartscore = ReportSmartScore(
            score=smartscore.score,
            verdict=smartscore.verdict.value,
            pillars=[ReportPillar(id=p.key.value, label=p.label, score=p.raw_score) for p in smartscore.pillars],
        )

    return ReportInput(
        programme_name=name,
        address=address or (operation.project.address if operation.project else None),
        market_study=market_study or _market_study_from_operation(operation),
        smartscore=report_smartscore,
        kpis=ReportKpis(
            ltv=kpis.ltv if kpis else None,
            dscr=kpis.dscr if kpis else None,
            annual_rent=revenues.rent_annual if revenues else None,
            total_cost=budget.total_cost if budget else None,
            gross_margin=kpis.margin if kpis else None,
            debt_ratio=kpis.dsti if kpis else None,
        ),
        missing=[item.label for item in clean_missing(operation)],
    )
