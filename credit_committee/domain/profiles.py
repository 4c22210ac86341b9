"""SmartScore profile configuration - pillar weights, grade thresholds and missing-data penalties"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple, Union

from credit_committee.domain.exceptions import UnknownProfileError
from credit_committee.domain.operation import BorrowerProfile, MissingSeverity


class PillarKey(str, Enum):
    DOCUMENTS = "documents"
    GUARANTEES = "garanties"
    BUDGET = "budget"
    REVENUES = "revenus"
    MARKET = "marche"
    RISKS = "risques"
    FEASIBILITY = "faisabilite"
    PLANNING = "planning"
    RATIOS = "ratios"


@dataclass(frozen=True)
class PillarConfig:
    key: PillarKey
    label: str
    weight: int  # max points for this pillar
    description: str
    required_fields: Tuple[str, ...] = ()
    missing_severity: MissingSeverity = MissingSeverity.INFO


@dataclass(frozen=True)
class GradeThresholds:
    a: int
    b: int
    c: int
    d: int  # anything below d is E


@dataclass(frozen=True)
class ScoreProfile:
    profile: BorrowerProfile
    label: str
    thresholds: GradeThresholds
    blocker_penalty: int
    warn_penalty: int
    pillars: Tuple[PillarConfig, ...] = field(default_factory=tuple)

    @property
    def total_points(self) -> int:
        return sum(p.weight for p in self.pillars)


_P = PillarKey
_S = MissingSeverity

DEVELOPER_PROFILE = ScoreProfile(
    profile=BorrowerProfile.DEVELOPER,
    label="Promoteur immobilier",
    thresholds=GradeThresholds(a=85, b=70, c=55, d=40),
    blocker_penalty=8,
    warn_penalty=3,
    pillars=(
        PillarConfig(_P.DOCUMENTS, "Documentation", 10, "Complétude et validité des documents du dossier",
                     ("documents.completeness",), _S.WARN),
        PillarConfig(_P.GUARANTEES, "Garanties", 10, "Couverture des garanties vs montant financé",
                     ("guarantees.total_coverage",), _S.WARN),
        PillarConfig(_P.BUDGET, "Budget & Coûts", 18, "Budget détaillé: foncier, construction, soft costs, aléas",
                     ("budget.purchase_price", "budget.works_budget", "budget.total_cost"), _S.BLOCKER),
        PillarConfig(_P.REVENUES, "Revenus & Scénarios", 15, "CA prévisionnel, scénarios base/stress/upside",
                     ("revenues.exit_value", "revenues.strategy"), _S.BLOCKER),
        PillarConfig(_P.MARKET, "Marché", 15, "Données marché: prix/m², tension, absorption",
                     ("market.price_per_sqm",), _S.WARN),
        PillarConfig(_P.RISKS, "Risques", 10, "Risques géo, environnementaux, réglementaires",
                     ("risks.geo",), _S.WARN),
        PillarConfig(_P.FEASIBILITY, "Faisabilité / Urbanisme", 8, "Conformité PLU, autorisations",
                     ("risks.urbanism",), _S.INFO),
        PillarConfig(_P.PLANNING, "Planning & Exécution", 4, "Délais, phasage, risques d'exécution",
                     ("risks.execution",), _S.INFO),
        PillarConfig(_P.RATIOS, "Ratios financiers", 10, "LTV, LTC, marge, TRI, DSCR",
                     ("kpis.ltv", "kpis.margin"), _S.WARN),
    ),
)

TRADER_PROFILE = ScoreProfile(
    profile=BorrowerProfile.TRADER,
    label="Marchand de biens",
    thresholds=GradeThresholds(a=85, b=70, c=55, d=40),
    blocker_penalty=8,
    warn_penalty=3,
    pillars=(
        PillarConfig(_P.DOCUMENTS, "Documentation", 10, "Complétude dossier",
                     ("documents.completeness",), _S.WARN),
        PillarConfig(_P.GUARANTEES, "Garanties", 12, "Couverture garanties",
                     ("guarantees.total_coverage",), _S.WARN),
        PillarConfig(_P.BUDGET, "Budget & Travaux", 20, "Achat + travaux + notaire + portage",
                     ("budget.purchase_price", "budget.works_budget", "budget.total_cost"), _S.BLOCKER),
        PillarConfig(_P.REVENUES, "Revenus & Sortie", 18, "Valeur de revente, marge prévisionnelle",
                     ("revenues.exit_value", "revenues.strategy"), _S.BLOCKER),
        PillarConfig(_P.MARKET, "Marché", 15, "Prix marché, tension, absorption",
                     ("market.price_per_sqm",), _S.WARN),
        PillarConfig(_P.RISKS, "Risques", 10, "Risques géo et environnementaux",
                     ("risks.geo",), _S.WARN),
        PillarConfig(_P.FEASIBILITY, "Urbanisme", 5, "Conformité PLU",
                     ("risks.urbanism",), _S.INFO),
        PillarConfig(_P.PLANNING, "Délais", 3, "Délai de retournement"),
        PillarConfig(_P.RATIOS, "Ratios", 7, "LTV, LTC, marge, ROI",
                     ("kpis.ltv", "kpis.margin"), _S.WARN),
    ),
)

INDIVIDUAL_PROFILE = ScoreProfile(
    profile=BorrowerProfile.INDIVIDUAL,
    label="Particulier",
    thresholds=GradeThresholds(a=80, b=65, c=50, d=35),
    blocker_penalty=6,
    warn_penalty=2,
    pillars=(
        PillarConfig(_P.DOCUMENTS, "Documentation", 15, "Justificatifs d'identité, revenus, patrimoine",
                     ("documents.completeness",), _S.WARN),
        PillarConfig(_P.GUARANTEES, "Garanties", 18, "Hypothèque, caution, assurance emprunteur",
                     ("guarantees.total_coverage",), _S.BLOCKER),
        PillarConfig(_P.BUDGET, "Budget", 15, "Prix d'achat + frais notaire + travaux éventuels",
                     ("budget.purchase_price",), _S.BLOCKER),
        PillarConfig(_P.REVENUES, "Revenus / Capacité", 12, "Revenus du ménage, charges, reste à vivre",
                     ("revenues.rent_annual",), _S.WARN),
        PillarConfig(_P.MARKET, "Marché", 10, "Cohérence prix/marché",
                     ("market.price_per_sqm",), _S.INFO),
        PillarConfig(_P.RISKS, "Risques", 8, "Risques naturels et technologiques",
                     ("risks.geo",), _S.INFO),
        PillarConfig(_P.FEASIBILITY, "Bien / État", 5, "État du bien, DPE, travaux nécessaires"),
        PillarConfig(_P.PLANNING, "Calendrier", 2, "Délais acquisition"),
        PillarConfig(_P.RATIOS, "Ratios", 15, "LTV, taux d'effort, DSCR",
                     ("kpis.ltv",), _S.WARN),
    ),
)

COMPANY_PROFILE = ScoreProfile(
    profile=BorrowerProfile.COMPANY,
    label="Entreprise",
    thresholds=GradeThresholds(a=82, b=68, c=52, d=38),
    blocker_penalty=7,
    warn_penalty=3,
    pillars=(
        PillarConfig(_P.DOCUMENTS, "Documentation", 12, "Bilans, Kbis, business plan",
                     ("documents.completeness",), _S.WARN),
        PillarConfig(_P.GUARANTEES, "Garanties", 15, "Hypothèques, nantissements, caution dirigeant",
                     ("guarantees.total_coverage",), _S.WARN),
        PillarConfig(_P.BUDGET, "Budget & Investissement", 15, "CAPEX total: acquisition + travaux + aménagement",
                     ("budget.purchase_price", "budget.total_cost"), _S.BLOCKER),
        PillarConfig(_P.REVENUES, "Exploitation / CA", 15, "Chiffre d'affaires, exploitation, rentabilité",
                     ("revenues.revenue_total",), _S.BLOCKER),
        PillarConfig(_P.MARKET, "Marché", 12, "Environnement commercial, concurrence",
                     ("market.price_per_sqm",), _S.WARN),
        PillarConfig(_P.RISKS, "Risques", 8, "Risques géo, environnementaux, sectoriels",
                     ("risks.geo",), _S.WARN),
        PillarConfig(_P.FEASIBILITY, "Faisabilité", 5, "Autorisations, conformité",
                     ("risks.urbanism",), _S.INFO),
        PillarConfig(_P.PLANNING, "Planning", 3, "Délais projet"),
        PillarConfig(_P.RATIOS, "Ratios financiers", 15, "LTV, DSCR, ICR, rendement",
                     ("kpis.ltv", "kpis.dscr"), _S.WARN),
    ),
)

_PROFILES: Dict[BorrowerProfile, ScoreProfile] = {
    BorrowerProfile.DEVELOPER: DEVELOPER_PROFILE,
    BorrowerProfile.TRADER: TRADER_PROFILE,
    BorrowerProfile.INDIVIDUAL: INDIVIDUAL_PROFILE,
    BorrowerProfile.COMPANY: COMPANY_PROFILE,
}


def get_score_profile(profile: Union[BorrowerProfile, str]) -> ScoreProfile:
    """Look up a profile configuration; an unconfigured profile is a caller error."""
    try:
        key = BorrowerProfile(profile)
    except ValueError:
        raise UnknownProfileError(str(profile)) from None
    if key not in _PROFILES:
        raise UnknownProfileError(key.value)
    return _PROFILES[key]


def get_all_score_profiles() -> List[ScoreProfile]:
    return list(_PROFILES.values())
