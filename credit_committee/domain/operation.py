"""Operation summary - the enriched, profile-tagged aggregate consumed by the SmartScore engine

Every sub-record is optional except the meta block; absent fields stay None.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from credit_committee.domain.models import Document, Guarantee


class BorrowerProfile(str, Enum):
    INDIVIDUAL = "particulier"
    TRADER = "marchand"
    DEVELOPER = "promoteur"
    COMPANY = "entreprise"


class MissingSeverity(str, Enum):
    INFO = "info"
    WARN = "warn"
    BLOCKER = "blocker"


# RiskItem.level values counted as high by the risk, feasibility and planning pillars
HIGH_RISK_ITEM_LEVELS = ("élevé", "très élevé")


@dataclass
class MissingItem:
    key: str  # dotted path, e.g. "budget.purchase_price"
    label: str
    severity: MissingSeverity = MissingSeverity.WARN


@dataclass
class OperationMeta:
    profile: Union[BorrowerProfile, str]  # unknown strings are rejected by the scorer
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    source: str = "manual"  # manual | enriched


@dataclass
class OperationProject:
    label: Optional[str] = None
    operation_type: Optional[str] = None
    asset_type: Optional[str] = None
    address: Optional[str] = None
    commune_insee: Optional[str] = None
    surface_m2: Optional[float] = None
    lots: Optional[float] = None
    description: Optional[str] = None


@dataclass
class OperationBudget:
    purchase_price: Optional[float] = None
    notary_fees: Optional[float] = None
    works_budget: Optional[float] = None
    soft_costs: Optional[float] = None
    holding_costs: Optional[float] = None
    contingency: Optional[float] = None
    land_cost: Optional[float] = None
    construction_cost: Optional[float] = None
    total_cost: Optional[float] = None
    equity: Optional[float] = None
    cost_per_sqm: Optional[float] = None


@dataclass
class OperationFinancing:
    loan_amount: Optional[float] = None
    loan_duration_months: Optional[float] = None
    loan_type: Optional[str] = None
    interest_rate: Optional[float] = None  # annual %
    equity: Optional[float] = None
    insurance_cost: Optional[float] = None
    monthly_payment: Optional[float] = None


@dataclass
class ScenarioValues:
    exit_value: Optional[float] = None
    margin: Optional[float] = None
    roi: Optional[float] = None
    irr: Optional[float] = None
    cashflow: Optional[float] = None


@dataclass
class RevenueScenarios:
    base: Optional[ScenarioValues] = None
    stress: Optional[ScenarioValues] = None
    upside: Optional[ScenarioValues] = None


@dataclass
class OperationRevenues:
    strategy: Optional[str] = None  # revente, location, exploitation, mixte, ...
    exit_value: Optional[float] = None
    rent_annual: Optional[float] = None
    rent_per_sqm: Optional[float] = None
    occupancy_rate: Optional[float] = None
    revenue_total: Optional[float] = None
    scenarios: Optional[RevenueScenarios] = None


@dataclass
class Commune:
    name: str
    population: Optional[float] = None
    density: Optional[float] = None
    department: Optional[str] = None
    region: Optional[str] = None
    code: Optional[str] = None


@dataclass
class OperationMarket:
    price_per_sqm: Optional[float] = None
    price_per_sqm_min: Optional[float] = None
    price_per_sqm_max: Optional[float] = None
    comps_count: Optional[float] = None
    demand_index: Optional[float] = None  # 0-100
    supply_index: Optional[float] = None
    absorption_months: Optional[float] = None
    evolution_pct: Optional[float] = None
    transactions_count: Optional[float] = None
    revenue_median: Optional[float] = None
    commune: Optional[Commune] = None
    sources: List[str] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)  # hydrated blocks kept verbatim


@dataclass
class DvfStats:
    transactions_count: Optional[float] = None
    price_median_eur_m2: Optional[float] = None
    price_mean_eur_m2: Optional[float] = None
    price_q1_eur_m2: Optional[float] = None
    price_q3_eur_m2: Optional[float] = None
    evolution_pct: Optional[float] = None


@dataclass
class DvfComparable:
    date: Optional[str] = None
    price: Optional[float] = None
    surface: Optional[float] = None
    price_per_sqm: Optional[float] = None


@dataclass
class DvfData:
    stats: DvfStats = field(default_factory=DvfStats)
    comparables: List[DvfComparable] = field(default_factory=list)


@dataclass
class RiskItem:
    category: str
    label: str
    level: str = "inconnu"  # faible | moyen | élevé | très élevé | inconnu
    status: str = "unknown"  # absent | present | unknown


@dataclass
class GeoRiskSummary:
    """Normalized geo-risk block (100 = no risk)"""

    score: float
    risk_count: int = 0
    has_flood: bool = False
    has_seismic: bool = False
    label: Optional[str] = None


@dataclass
class OperationRisks:
    geo: Union[GeoRiskSummary, List[RiskItem], None] = None
    urbanism: List[RiskItem] = field(default_factory=list)
    execution: List[RiskItem] = field(default_factory=list)
    environmental: List[RiskItem] = field(default_factory=list)
    score: Optional[float] = None
    global_level: Optional[str] = None
    sources: List[str] = field(default_factory=list)


@dataclass
class PropertyCondition:
    age_category: Optional[str] = None  # neuf | recent | ancien
    condition: Optional[str] = None  # bon | moyen | mauvais
    estimated_value: Optional[float] = None


@dataclass
class OperationCalendar:
    acquisition_date: Optional[str] = None  # ISO date
    duration_months: Optional[float] = None
    start_works_date: Optional[str] = None


@dataclass
class OperationKpis:
    margin: Optional[float] = None  # %
    margin_net: Optional[float] = None
    roi: Optional[float] = None
    irr: Optional[float] = None
    ltv: Optional[float] = None  # %
    ltc: Optional[float] = None  # %
    dscr: Optional[float] = None
    icr: Optional[float] = None
    cash_on_cash: Optional[float] = None
    yield_gross: Optional[float] = None
    yield_net: Optional[float] = None
    dsti: Optional[float] = None  # debt service to income, %
    monthly_payment: Optional[float] = None
    project_cost: Optional[float] = None


@dataclass
class DocumentsSnapshot:
    completeness: Optional[float] = None  # %
    items: List[Document] = field(default_factory=list)


@dataclass
class GuaranteesSnapshot:
    items: List[Guarantee] = field(default_factory=list)
    total_coverage: Optional[float] = None


@dataclass
class OperationSummary:
    meta: OperationMeta
    dossier_id: Optional[str] = None
    project: Optional[OperationProject] = None
    budget: Optional[OperationBudget] = None
    financing: Optional[OperationFinancing] = None
    revenues: Optional[OperationRevenues] = None
    market: Optional[OperationMarket] = None
    dvf: Optional[DvfData] = None
    risks: Optional[OperationRisks] = None
    property_condition: Optional[PropertyCondition] = None
    calendar: Optional[OperationCalendar] = None
    kpis: Optional[OperationKpis] = None
    documents: Optional[DocumentsSnapshot] = None
    guarantees: Optional[GuaranteesSnapshot] = None
    missing: List[MissingItem] = field(default_factory=list)

    @property
    def profile(self) -> Union[BorrowerProfile, str]:
        return self.meta.profile
