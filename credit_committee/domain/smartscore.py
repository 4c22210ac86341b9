"""Multi-pillar SmartScore engine - profile-weighted credit score over an operation summary"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from credit_committee.domain.models import DocumentStatus
from credit_committee.domain.numeric import clamp, finite_number, format_fixed, format_number, has_value, round_half_up
from credit_committee.domain.operation import (
    HIGH_RISK_ITEM_LEVELS,
    BorrowerProfile,
    GeoRiskSummary,
    MissingItem,
    MissingSeverity,
    OperationSummary,
)
from credit_committee.domain.profiles import PillarKey, ScoreProfile, get_score_profile
from credit_committee.utils.date_utils import months_between, parse_iso_date, utc_now_iso

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10
MAX_DRIVERS_PER_DIRECTION = 3
CRITICAL_PILLAR_WEIGHT = 10


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class ScoreVerdict(str, Enum):
    FAVORABLE = "favorable"
    CONDITIONAL = "favorable_sous_conditions"
    UNFAVORABLE = "défavorable"
    INSUFFICIENT_DATA = "données_insuffisantes"


@dataclass
class PillarScore:
    """Output of a single pillar scorer, before weighting"""

    raw: float
    reasons: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    has_data: bool = True


@dataclass
class PillarResult:
    key: PillarKey
    label: str
    max_points: int
    raw_score: float
    points: int
    has_data: bool
    reasons: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)


@dataclass
class MissingPenalty:
    key: str
    label: str
    points: int
    severity: MissingSeverity


@dataclass
class SmartScoreDriver:
    label: str
    direction: str  # up | down
    impact: str


@dataclass
class SmartScoreResult:
    score: int
    grade: Grade
    verdict: ScoreVerdict
    profile: BorrowerProfile
    pillars: List[PillarResult]
    drivers: List[SmartScoreDriver]
    recommendations: List[str]
    missing_penalties: List[MissingPenalty]
    total_missing_penalty: int
    blockers: List[str]
    computed_at: str


def _bounded(raw: float, reasons: List[str], actions: List[str]) -> PillarScore:
    return PillarScore(raw=clamp(raw, 0, 100), reasons=reasons, actions=actions, has_data=True)


def _thousands(value: float) -> str:
    return format_fixed(value / 1000, 0)


# ════════════════════════════════════════════════════════════════════
# Pillar scorers
# ════════════════════════════════════════════════════════════════════


def score_documents(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    snapshot = op.documents
    completeness = finite_number(snapshot.completeness) if snapshot else None
    items = snapshot.items if snapshot else []
    total = len(items)

    if total == 0 and not completeness:
        return PillarScore(0, ["Aucun document enregistré"], ["Télécharger les pièces justificatives requises"], False)

    received = sum(1 for d in items if d.status == DocumentStatus.SUPPLIED)
    refused = sum(1 for d in items if d.status == DocumentStatus.REFUSED)
    reasons: List[str] = []
    actions: List[str] = []

    if completeness is not None:
        raw = completeness
    else:
        raw = round_half_up(received / total * 100) if total > 0 else 0

    if refused > 0:
        raw = max(0, raw - refused * 10)
        reasons.append(f"{refused} document(s) refusé(s)")
        actions.append("Remplacer les documents refusés")

    if raw < 50:
        reasons.append(f"Complétude faible: {round_half_up(raw)}%")
        actions.append("Compléter le dossier documentaire")
    elif raw < 80:
        reasons.append(f"Complétude partielle: {round_half_up(raw)}%")
    else:
        reasons.append(f"Dossier bien documenté: {round_half_up(raw)}%")

    return _bounded(raw, reasons, actions)


def score_guarantees(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    snapshot = op.guarantees
    items = snapshot.items if snapshot else []
    coverage = finite_number(snapshot.total_coverage) if snapshot else None
    loan_amount = finite_number(op.financing.loan_amount) if op.financing else None

    if not items and not coverage:
        return PillarScore(0, ["Aucune garantie enregistrée"], ["Constituer des garanties (hypothèque, caution…)"], False)

    reasons: List[str] = []
    actions: List[str] = []

    coverage_ratio = 0
    if coverage and loan_amount and loan_amount > 0:
        coverage_ratio = round_half_up(coverage / loan_amount * 100)

    if coverage_ratio >= 150:
        raw = 100
        reasons.append(f"Ratio garanties/prêt excellent: {coverage_ratio}%")
    elif coverage_ratio >= 120:
        raw = 90
        reasons.append(f"Ratio garanties/prêt solide: {coverage_ratio}%")
    elif coverage_ratio >= 100:
        raw = 75
        reasons.append(f"Ratio garanties/prêt suffisant: {coverage_ratio}%")
    elif coverage_ratio >= 80:
        raw = 55
        reasons.append(f"Ratio garanties/prêt insuffisant: {coverage_ratio}%")
        actions.append("Renforcer la couverture des garanties")
    elif coverage_ratio > 0:
        raw = 30
        reasons.append(f"Ratio garanties/prêt faible: {coverage_ratio}%")
        actions.append("Couverture très insuffisante — exiger des garanties complémentaires")
    else:
        raw = 20
        reasons.append("Ratio non calculable (montant prêt manquant)")

    # Diversification bonus
    if len({g.type for g in items}) >= 3:
        raw = min(100, raw + 5)
        reasons.append("Diversification des garanties (+5)")

    return PillarScore(raw, reasons, actions, True)


def score_budget(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    b = op.budget
    if b is None or not has_value(b.purchase_price):
        return PillarScore(0, ["Budget non renseigné"], ["Saisir le prix d'achat et les coûts associés"], False)

    reasons: List[str] = []
    actions: List[str] = []
    raw = 50

    if has_value(b.total_cost):
        raw += 10
        reasons.append("Coût total calculé")
    else:
        actions.append("Renseigner ou vérifier le coût total")

    if has_value(b.notary_fees):
        raw += 5

    if profile in (BorrowerProfile.DEVELOPER, BorrowerProfile.TRADER):
        if has_value(b.works_budget):
            raw += 15
            reasons.append(f"Budget travaux: {_thousands(b.works_budget)}k€")
        else:
            raw -= 10
            actions.append("Renseigner le budget travaux — essentiel pour ce profil")
        if has_value(b.contingency):
            raw += 5
            reasons.append("Provision pour aléas incluse")
        else:
            actions.append("Prévoir une provision pour aléas (5-10% recommandé)")
        if has_value(b.soft_costs):
            raw += 5
            reasons.append("Soft costs (honoraires) renseignés")
        if has_value(b.holding_costs):
            raw += 5
            reasons.append("Frais de portage renseignés")
    elif has_value(b.works_budget):
        raw += 10
        reasons.append("Budget travaux renseigné")

    if has_value(b.equity):
        raw += 5
        reasons.append("Apport personnel renseigné")

    market_price = op.market.price_per_sqm if op.market else None
    if has_value(b.cost_per_sqm) and has_value(market_price):
        cost_ratio = b.cost_per_sqm / market_price
        if cost_ratio > 1.3:
            raw -= 5
            reasons.append(
                f"Coût/m² ({format_number(b.cost_per_sqm)}€) supérieur au marché ({format_number(market_price)}€/m²)"
            )
        elif cost_ratio < 0.7:
            raw += 5
            reasons.append("Coût/m² inférieur au marché — bonne opportunité")

    return _bounded(raw, reasons, actions)


def score_revenues(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    r = op.revenues
    has_exit = r is not None and has_value(r.exit_value)
    has_rent = r is not None and has_value(r.rent_annual)
    has_revenue = r is not None and has_value(r.revenue_total)

    if not (has_exit or has_rent or has_revenue):
        return PillarScore(
            0, ["Aucun revenu/sortie renseigné"], ["Définir la stratégie de sortie et les revenus attendus"], False
        )

    reasons: List[str] = []
    actions: List[str] = []
    raw = 40

    if has_value(r.strategy):
        raw += 10
        reasons.append(f"Stratégie: {r.strategy}")
    else:
        actions.append("Préciser la stratégie de sortie (revente, location, exploitation)")

    if has_exit:
        raw += 15
        reasons.append(f"Valeur sortie: {_thousands(r.exit_value)}k€")

    if has_rent:
        raw += 10
        reasons.append(f"Loyer annuel: {_thousands(r.rent_annual)}k€")

    # Total revenue alone still counts as revenue data
    if has_revenue and not has_rent and not has_exit:
        raw += 10
        reasons.append(f"Revenus annuels: {_thousands(r.revenue_total)}k€")
    elif has_revenue:
        raw += 5
        reasons.append(f"Revenus ménage: {_thousands(r.revenue_total)}k€/an")

    if has_value(r.occupancy_rate):
        raw += 5
        reasons.append(f"Taux d'occupation: {format_number(r.occupancy_rate)}%")

    scenarios = r.scenarios
    if scenarios is not None:
        if scenarios.base and has_value(scenarios.base.exit_value):
            raw += 5
            reasons.append("Scénario base défini")
        if scenarios.stress and has_value(scenarios.stress.exit_value):
            raw += 10
            reasons.append("Scénario stress défini — bonne pratique")
        if scenarios.upside and has_value(scenarios.upside.exit_value):
            raw += 5
            reasons.append("Scénario upside défini")

        stress_margin = finite_number(scenarios.stress.margin) if scenarios.stress else None
        if stress_margin is not None and stress_margin < 0:
            raw -= 10
            reasons.append(f"⚠️ Marge négative en scénario stress: {format_number(stress_margin)}%")
            actions.append("Revoir le scénario stress — marge négative inacceptable pour le comité")
    elif profile in (BorrowerProfile.DEVELOPER, BorrowerProfile.TRADER):
        actions.append("Définir des scénarios base/stress/upside — requis pour le comité")

    return _bounded(raw, reasons, actions)


def score_market(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    m = op.market
    if m is None or not (has_value(m.price_per_sqm) or has_value(m.demand_index) or has_value(m.comps_count)):
        return PillarScore(0, ["Données marché absentes"], ["Enrichir avec les moteurs marché (INSEE/DVF/BPE)"], False)

    reasons: List[str] = []
    actions: List[str] = []
    raw = 40

    if has_value(m.price_per_sqm):
        raw += 15
        reasons.append(f"Prix médian: {format_number(m.price_per_sqm)}€/m²")

    if has_value(m.demand_index):
        raw += 10
        demand = format_number(m.demand_index)
        if m.demand_index > 70:
            reasons.append(f"Forte demande ({demand}/100)")
        elif m.demand_index > 40:
            reasons.append(f"Demande modérée ({demand}/100)")
        else:
            reasons.append(f"Demande faible ({demand}/100)")
            raw -= 5

    if has_value(m.comps_count) and m.comps_count >= 10:
        raw += 5
        reasons.append(f"{format_number(m.comps_count)} comparables DVF")

    if has_value(m.absorption_months):
        if m.absorption_months < 6:
            raw += 5
            reasons.append("Absorption rapide (< 6 mois)")
        elif m.absorption_months > 18:
            raw -= 5
            reasons.append("Absorption lente (> 18 mois)")
            actions.append("Marché peu liquide — prévoir des délais")

    if has_value(m.evolution_pct):
        if m.evolution_pct > 3:
            raw += 5
            reasons.append(f"Prix en hausse: +{format_number(m.evolution_pct)}%")
        elif m.evolution_pct < -3:
            raw -= 5
            reasons.append(f"Prix en baisse: {format_number(m.evolution_pct)}%")

    if m.sources:
        raw += 5
        reasons.append(f"Sources: {', '.join(m.sources)}")

    return _bounded(raw, reasons, actions)


def score_risks(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    rk = op.risks
    absent = PillarScore(0, ["Analyse de risques absente"], ["Enrichir avec l'analyse Géorisques"], False)
    if rk is None:
        return absent

    reasons: List[str] = []
    actions: List[str] = []

    # Normalized geo summary
    if isinstance(rk.geo, GeoRiskSummary):
        geo = rk.geo
        raw = geo.score
        if geo.risk_count == 0:
            reasons.append("Aucun risque majeur identifié")
        else:
            reasons.append(f"{geo.risk_count} risque(s) identifié(s)")
        if geo.has_flood:
            reasons.append("Zone inondable identifiée")
            raw = min(raw, 60)
            actions.append("Vérifier le PPRI et les contraintes liées à l'inondation")
        if geo.has_seismic:
            reasons.append("Zone sismique identifiée")
        if geo.label:
            reasons.append(f"Niveau de risque: {geo.label}")
        if rk.sources:
            reasons.append(f"Sources: {', '.join(rk.sources)}")
        return _bounded(raw, reasons, actions)

    # Item lists
    geo_items = rk.geo or []
    if not geo_items and not rk.environmental:
        return absent

    all_risks = [*geo_items, *rk.environmental, *rk.urbanism]
    high = [r for r in all_risks if r.level in HIGH_RISK_ITEM_LEVELS]
    medium = [r for r in all_risks if r.level == "moyen"]
    unknown = [r for r in all_risks if r.status == "unknown"]

    raw = 100 - len(high) * 15 - len(medium) * 5 - len(unknown) * 3

    if high:
        reasons.append(f"{len(high)} risque(s) élevé(s): {', '.join(r.label for r in high)}")
        actions.append("Vérifier les risques élevés et prévoir les mesures de mitigation")
    if medium:
        reasons.append(f"{len(medium)} risque(s) modéré(s)")
    if unknown:
        reasons.append(f"{len(unknown)} risque(s) non évalué(s)")
    if not high and not medium:
        reasons.append("Aucun risque majeur identifié")
    if rk.sources:
        reasons.append(f"Sources: {', '.join(rk.sources)}")

    return _bounded(raw, reasons, actions)


def score_feasibility(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    urbanism = op.risks.urbanism if op.risks else []
    prop = op.property_condition
    has_urbanism = bool(urbanism)
    has_property = prop is not None and (
        has_value(prop.age_category) or has_value(prop.condition) or has_value(prop.estimated_value)
    )

    if not has_urbanism and not has_property:
        return PillarScore(
            0, ["Données bien/urbanisme non disponibles"], ["Renseigner l'état du bien ou vérifier la conformité PLU"], False
        )

    reasons: List[str] = []
    actions: List[str] = []
    raw = 0

    if has_property:
        if prop.age_category:
            if prop.age_category == "neuf":
                raw += 35
                reasons.append("Bien neuf — pas de risque vétusté")
            elif prop.age_category == "recent":
                raw += 30
                reasons.append("Bien récent (< 15 ans)")
            else:
                raw += 20
                reasons.append("Bien ancien — vérifier DPE et travaux")
                actions.append("Prévoir un diagnostic technique (DPE, amiante, plomb)")

        if prop.condition:
            if prop.condition == "bon":
                raw += 30
                reasons.append("État général: bon")
            elif prop.condition == "moyen":
                raw += 20
                reasons.append("État général: moyen — travaux probables")
                actions.append("Prévoir un budget travaux de remise en état")
            else:
                raw += 10
                reasons.append("État général: mauvais — travaux importants")
                actions.append("Chiffrer les travaux de rénovation")

        if has_value(prop.estimated_value):
            raw += 15
            reasons.append(f"Valeur estimée: {_thousands(prop.estimated_value)}k€")

    if has_urbanism:
        violations = [u for u in urbanism if u.status == "present" and u.level in HIGH_RISK_ITEM_LEVELS]
        warnings = [u for u in urbanism if u.status == "present" and u.level == "moyen"]
        if violations:
            raw -= len(violations) * 20
            reasons.append(f"{len(violations)} non-conformité(s) PLU")
            actions.append("Résoudre les non-conformités PLU avant instruction")
        elif warnings:
            raw -= len(warnings) * 5
        else:
            raw += 20
            reasons.append("Urbanisme conforme")

    # Property-only data tops out at 80 points, rescaled with an 85 ceiling
    if has_property and not has_urbanism:
        raw = min(85, round_half_up(raw * 100 / 80))

    return _bounded(raw, reasons, actions)


def score_planning(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    execution = op.risks.execution if op.risks else []
    cal = op.calendar
    has_execution = bool(execution)
    has_calendar = cal is not None and (has_value(cal.acquisition_date) or has_value(cal.duration_months))

    if not has_execution and not has_calendar:
        return PillarScore(0, ["Pas de données calendrier/exécution"], [], False)

    reasons: List[str] = []
    actions: List[str] = []
    raw = 60

    if has_calendar:
        if has_value(cal.acquisition_date):
            raw += 15
            acquisition = parse_iso_date(cal.acquisition_date)
            if acquisition is None:
                reasons.append("Date d'acquisition renseignée")
            else:
                months_until = months_between(as_of, acquisition)
                if months_until < 0:
                    reasons.append("Date d'acquisition passée")
                    actions.append("Mettre à jour la date d'acquisition")
                    raw -= 10
                elif months_until <= 3:
                    reasons.append("Acquisition imminente (< 3 mois)")
                elif months_until <= 12:
                    reasons.append(f"Acquisition dans ~{months_until} mois")
                else:
                    reasons.append(f"Acquisition lointaine (~{months_until} mois)")
                    raw -= 5

        if has_value(cal.duration_months):
            raw += 10
            duration = cal.duration_months
            label = format_number(duration)
            if duration <= 6:
                reasons.append(f"Travaux courts: {label} mois")
                raw += 5
            elif duration <= 18:
                reasons.append(f"Durée travaux: {label} mois")
            elif duration <= 36:
                reasons.append(f"Travaux longs: {label} mois")
                raw -= 5
            else:
                reasons.append(f"Travaux très longs: {label} mois")
                raw -= 15
                actions.append("Durée > 36 mois — risque de dépassement")

        if has_value(cal.start_works_date):
            raw += 5
            reasons.append("Date début travaux planifiée")

    if has_execution:
        high = [e for e in execution if e.level in HIGH_RISK_ITEM_LEVELS]
        if high:
            raw -= len(high) * 15
            reasons.append(f"{len(high)} risque(s) d'exécution élevé(s)")
        else:
            raw += 10
            reasons.append("Risque d'exécution maîtrisé")

    return _bounded(raw, reasons, actions)


def score_ratios(op: OperationSummary, profile: BorrowerProfile, as_of: date) -> PillarScore:
    k = op.kpis
    if k is None or not any(
        has_value(v) for v in (k.ltv, k.margin, k.dscr, k.yield_gross, k.dsti, k.monthly_payment)
    ):
        return PillarScore(
            0,
            ["Ratios non calculables (données insuffisantes)"],
            ["Compléter budget et revenus pour calculer les ratios"],
            False,
        )

    reasons: List[str] = []
    actions: List[str] = []
    raw = 50

    if has_value(k.ltv):
        ltv = format_number(k.ltv)
        if k.ltv <= 60:
            raw += 15
            reasons.append(f"LTV excellent: {ltv}%")
        elif k.ltv <= 75:
            raw += 10
            reasons.append(f"LTV bon: {ltv}%")
        elif k.ltv <= 85:
            raw += 5
            reasons.append(f"LTV acceptable: {ltv}%")
        else:
            raw -= 5
            reasons.append(f"LTV élevé: {ltv}%")
            actions.append("LTV > 85% — renforcer l'apport ou les garanties")

    if has_value(k.dsti):
        dsti = format_number(k.dsti)
        if k.dsti <= 33:
            raw += 10
            reasons.append(f"Taux d'effort maîtrisé: {dsti}%")
        elif k.dsti <= 45:
            raw += 3
            reasons.append(f"Taux d'effort élevé: {dsti}%")
            actions.append("Taux d'effort > 33% — attention au reste à vivre")
        else:
            raw -= 10
            reasons.append(f"⚠️ Taux d'effort excessif: {dsti}%")
            actions.append("DSTI > 45% — dépassement seuil HCSF, risque de refus")

    if has_value(k.margin) and profile in (BorrowerProfile.DEVELOPER, BorrowerProfile.TRADER):
        margin = format_number(k.margin)
        if k.margin >= 20:
            raw += 15
            reasons.append(f"Marge forte: {margin}%")
        elif k.margin >= 10:
            raw += 8
            reasons.append(f"Marge correcte: {margin}%")
        elif k.margin >= 0:
            reasons.append(f"Marge faible: {margin}%")
            actions.append("Optimiser les coûts ou revoir le prix de sortie")
        else:
            raw -= 15
            reasons.append(f"⚠️ Marge négative: {margin}%")
            actions.append("Opération déficitaire — revoir fondamentalement le montage")

    if has_value(k.dscr):
        dscr = format_number(k.dscr)
        if k.dscr >= 1.5:
            raw += 10
            reasons.append(f"DSCR solide: {dscr}")
        elif k.dscr >= 1.2:
            raw += 5
            reasons.append(f"DSCR acceptable: {dscr}")
        else:
            raw -= 10
            reasons.append(f"DSCR insuffisant: {dscr}")
            actions.append("DSCR < 1.2 — capacité de remboursement trop juste")

    if has_value(k.yield_gross):
        if k.yield_gross >= 7:
            raw += 5
            reasons.append(f"Rendement brut: {format_number(k.yield_gross)}%")
        elif k.yield_gross < 3:
            raw -= 3
            reasons.append(f"Rendement brut faible: {format_number(k.yield_gross)}%")

    if has_value(k.ltc) and k.ltc > 90:
        raw -= 5
        reasons.append(f"LTC élevé: {format_number(k.ltc)}%")
        actions.append("Financement > 90% du coût total — risque pour la banque")

    # Monthly payment only counts when no other debt-service ratio is known
    if has_value(k.monthly_payment) and not has_value(k.dsti) and not has_value(k.dscr):
        raw += 3
        reasons.append(f"Mensualité calculée: {format_number(k.monthly_payment)}€/mois")

    return _bounded(raw, reasons, actions)


PillarScorer = Callable[[OperationSummary, BorrowerProfile, date], PillarScore]

PILLAR_SCORERS: Dict[PillarKey, PillarScorer] = {
    PillarKey.DOCUMENTS: score_documents,
    PillarKey.GUARANTEES: score_guarantees,
    PillarKey.BUDGET: score_budget,
    PillarKey.REVENUES: score_revenues,
    PillarKey.MARKET: score_market,
    PillarKey.RISKS: score_risks,
    PillarKey.FEASIBILITY: score_feasibility,
    PillarKey.PLANNING: score_planning,
    PillarKey.RATIOS: score_ratios,
}


# ════════════════════════════════════════════════════════════════════
# Missing data cleanup
# ════════════════════════════════════════════════════════════════════


def _present_fields(op: OperationSummary) -> Set[str]:
    present: Set[str] = set()

    def mark(section: str, record, *names: str) -> None:
        if record is None:
            return
        for name in names:
            if has_value(getattr(record, name)):
                present.add(f"{section}.{name}")

    mark("budget", op.budget, "purchase_price", "total_cost", "works_budget", "equity")
    mark("revenues", op.revenues, "revenue_total", "rent_annual", "exit_value", "strategy")
    mark("kpis", op.kpis, "ltv", "dscr", "dsti", "margin", "monthly_payment")
    mark("financing", op.financing, "loan_amount")
    mark("market", op.market, "price_per_sqm", "demand_index")
    mark("calendar", op.calendar, "acquisition_date")

    if op.risks is not None and op.risks.geo is not None:
        present.add("risks.geo")
    if op.property_condition is not None and (
        has_value(op.property_condition.age_category) or has_value(op.property_condition.condition)
    ):
        present.add("property.condition")

    return present


def clean_missing(operation: OperationSummary) -> List[MissingItem]:
    """
    Drop missing-data items already satisfied by hydrated fields.

    An item is satisfied by an exact key match, by a present field nested under it
    ("budget" is cleared by "budget.purchase_price"), by a present parent field
    ("risks.geo.score" is cleared by "risks.geo"), or by a top-level section match.
    """
    if not operation.missing:
        return []

    present = _present_fields(operation)

    def satisfied(item: MissingItem) -> bool:
        key = item.key or ""
        if key in present:
            return True
        for field_path in present:
            if field_path.startswith(key + ".") or key.startswith(field_path + "."):
                return True
            if key == field_path.split(".")[0]:
                return True
        return False

    return [item for item in operation.missing if not satisfied(item)]


# ════════════════════════════════════════════════════════════════════
# Main scorer
# ════════════════════════════════════════════════════════════════════


def _grade(score: int, score_profile: ScoreProfile) -> Grade:
    t = score_profile.thresholds
    if score >= t.a:
        return Grade.A
    if score >= t.b:
        return Grade.B
    if score >= t.c:
        return Grade.C
    if score >= t.d:
        return Grade.D
    return Grade.E


def _score_pillars(operation: OperationSummary, score_profile: ScoreProfile, as_of: date) -> List[PillarResult]:
    pillars = []
    for cfg in score_profile.pillars:
        result = PILLAR_SCORERS[cfg.key](operation, score_profile.profile, as_of)
        pillars.append(
            PillarResult(
                key=cfg.key,
                label=cfg.label,
                max_points=cfg.weight,
                raw_score=result.raw,
                points=round_half_up(result.raw / 100 * cfg.weight),
                has_data=result.has_data,
                reasons=result.reasons,
                actions=result.actions,
            )
        )
    return pillars


def _drivers(pillars: List[PillarResult]) -> List[SmartScoreDriver]:
    by_score = sorted(pillars, key=lambda p: p.raw_score, reverse=True)

    def driver(p: PillarResult, direction: str) -> SmartScoreDriver:
        return SmartScoreDriver(label=p.label, direction=direction, impact=f"{p.points}/{p.max_points} pts")

    ups = [p for p in by_score if p.has_data and p.raw_score >= 60][:MAX_DRIVERS_PER_DIRECTION]
    downs = [p for p in reversed(by_score) if p.has_data and p.raw_score < 50][:MAX_DRIVERS_PER_DIRECTION]
    return [driver(p, "up") for p in ups] + [driver(p, "down") for p in downs]


def _recommendations(pillars: List[PillarResult], penalties: List[MissingPenalty]) -> List[str]:
    recommendations: List[str] = []
    for pillar in sorted(pillars, key=lambda p: p.raw_score):
        for action in pillar.actions:
            if action not in recommendations:
                recommendations.append(action)

    blocker_labels = [p.label for p in penalties if p.severity == MissingSeverity.BLOCKER]
    if blocker_labels:
        recommendations.insert(0, f"Renseigner en priorité: {', '.join(blocker_labels)}")

    return recommendations[:MAX_RECOMMENDATIONS]


def compute_smartscore(operation: OperationSummary, as_of: Optional[date] = None) -> SmartScoreResult:
    """
    Score an operation summary against its borrower profile.

    Steps:
    - Each configured pillar is scored 0-100 by its registered scorer, then weighted
    - Non-info missing items (after cleanup) cost the profile's blocker/warn penalty
    - Score = clamp(sum(points) - penalty, 0, 100), graded on the profile thresholds
    - Any blocker forces the "insufficient data" verdict; blockers never change the score

    Raises:
        UnknownProfileError: the operation carries a profile with no configuration
    """
    score_profile = get_score_profile(operation.profile)
    as_of = as_of or date.today()

    # Step 1: pillars
    pillars = _score_pillars(operation, score_profile, as_of)

    # Step 2: missing-data penalties
    cleaned = clean_missing(operation)
    penalties = [
        MissingPenalty(
            key=item.key,
            label=item.label,
            severity=item.severity,
            points=score_profile.blocker_penalty
            if item.severity == MissingSeverity.BLOCKER
            else score_profile.warn_penalty,
        )
        for item in cleaned
        if item.severity != MissingSeverity.INFO
    ]
    total_penalty = sum(p.points for p in penalties)

    # Step 3: aggregate and grade
    raw_total = sum(p.points for p in pillars)
    score = int(clamp(raw_total - total_penalty, 0, 100))
    grade = _grade(score, score_profile)

    # Step 4: blockers and verdict
    blockers = [f"Donnée bloquante manquante: {m.label}" for m in cleaned if m.severity == MissingSeverity.BLOCKER]
    blockers += [
        f"Pilier critique sans données: {p.label}"
        for p in pillars
        if p.max_points >= CRITICAL_PILLAR_WEIGHT and p.points == 0 and not p.has_data
    ]

    thresholds = score_profile.thresholds
    if blockers:
        verdict = ScoreVerdict.INSUFFICIENT_DATA
    elif score >= thresholds.b:
        verdict = ScoreVerdict.FAVORABLE
    elif score >= thresholds.d:
        verdict = ScoreVerdict.CONDITIONAL
    else:
        verdict = ScoreVerdict.UNFAVORABLE

    logger.debug(
        "SmartScore computed",
        extra={
            "profile": score_profile.profile.value,
            "score": score,
            "grade": grade.value,
            "blockers": len(blockers),
        },
    )

    return SmartScoreResult(
        score=score,
        grade=grade,
        verdict=verdict,
        profile=score_profile.profile,
        pillars=pillars,
        drivers=_drivers(pillars),
        recommendations=_recommendations(pillars, penalties),
        missing_penalties=penalties,
        total_missing_penalty=total_penalty,
        blockers=blockers,
        computed_at=utc_now_iso(),
    )


def build_verdict_explanation(result: SmartScoreResult) -> str:
    """Multi-line committee summary of a SmartScore result"""
    lines = [
        f"Score: {result.score}/100 ({result.grade.value}) — Verdict: {result.verdict.value}",
        f"Profil: {result.profile.value}",
    ]

    strong = [p for p in result.pillars if p.has_data and p.raw_score >= 70]
    if strong:
        lines.append("Points forts: " + ", ".join(f"{p.label} ({format_number(p.raw_score)}/100)" for p in strong))

    weak = [p for p in result.pillars if p.has_data and p.raw_score < 45]
    if weak:
        lines.append(
            "Points de vigilance: " + ", ".join(f"{p.label} ({format_number(p.raw_score)}/100)" for p in weak)
        )

    if result.missing_penalties:
        lines.append(
            f"Données manquantes: {len(result.missing_penalties)} élément(s), "
            f"pénalité: -{result.total_missing_penalty}pts"
        )

    if result.blockers:
        lines.append(f"⛔ Blockers: {' ; '.join(result.blockers)}")

    return "\n".join(lines)
