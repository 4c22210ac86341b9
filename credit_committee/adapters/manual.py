"""Manual-entry adapter - builds an OperationSummary from a dossier and its origination form

This is the path that works without any enrichment service: every KPI it can derive
from the typed-in figures is computed here, and the profile's required fields that
are still blank become missing-data items for the SmartScore.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from credit_committee.domain.catalog import get_required_documents
from credit_committee.domain.intake import compute_completeness
from credit_committee.domain.models import Dossier, ProjectType
from credit_committee.domain.numeric import finite_number, round_half_up
from credit_committee.domain.operation import (
    BorrowerProfile,
    DocumentsSnapshot,
    GuaranteesSnapshot,
    MissingItem,
    MissingSeverity,
    OperationBudget,
    OperationFinancing,
    OperationKpis,
    OperationMeta,
    OperationProject,
    OperationRevenues,
    OperationSummary,
)
from credit_committee.utils.date_utils import utc_now_iso

logger = logging.getLogger(__name__)

DOCUMENTS_COMPLETENESS_FLOOR = 50


@dataclass
class Origination:
    """Figures typed in by the account officer when the dossier is opened"""

    profile: Optional[str] = None
    project_type: Optional[str] = None
    borrower_type: Optional[str] = None  # personne_physique | personne_morale
    borrower_name: Optional[str] = None
    borrower_siren: Optional[str] = None

    project_name: Optional[str] = None
    operation_type: Optional[str] = None
    asset_type: Optional[str] = None
    address: Optional[str] = None
    commune_insee: Optional[str] = None
    surface_m2: Optional[float] = None
    lots: Optional[float] = None
    description: Optional[str] = None

    purchase_price: Optional[float] = None
    notary_fees: Optional[float] = None
    works_budget: Optional[float] = None
    construction_cost: Optional[float] = None
    soft_costs: Optional[float] = None
    holding_costs: Optional[float] = None
    contingency: Optional[float] = None
    land_cost: Optional[float] = None
    total_cost: Optional[float] = None

    loan_amount: Optional[float] = None
    loan_duration_months: Optional[float] = None
    loan_type: Optional[str] = None
    interest_rate: Optional[float] = None
    equity: Optional[float] = None
    insurance_cost: Optional[float] = None

    exit_strategy: Optional[str] = None
    exit_value: Optional[float] = None
    revenue_total: Optional[float] = None  # chiffre d'affaires
    rent_annual: Optional[float] = None
    occupancy_rate: Optional[float] = None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _first(*values: Any) -> Optional[float]:
    for value in values:
        number = finite_number(value)
        if number is not None:
            return number
    return None


def detect_profile(
    origination: Origination,
    dossier: Optional[Dossier] = None,
    explicit: Union[BorrowerProfile, str, None] = None,
) -> BorrowerProfile:
    """
    Resolve the borrower profile.

    Order: explicit profile, then the project type, then the borrower's legal form,
    then "particulier".
    """
    for candidate in (explicit, origination.profile):
        if candidate is None:
            continue
        try:
            return BorrowerProfile(candidate)
        except ValueError:
            continue

    project_type = dossier.project_type if dossier is not None else origination.project_type
    project_type = (project_type.value if isinstance(project_type, ProjectType) else project_type or "").lower()
    if project_type in ("promotion", "promoteur"):
        return BorrowerProfile.DEVELOPER
    if project_type in ("marchand", "marchand_de_biens"):
        return BorrowerProfile.TRADER
    if project_type in ("baseline", "particulier"):
        return BorrowerProfile.INDIVIDUAL

    if origination.borrower_type == "personne_morale":
        return BorrowerProfile.COMPANY
    return BorrowerProfile.INDIVIDUAL


@dataclass(frozen=True)
class RequiredField:
    key: str
    label: str
    severity: MissingSeverity
    extract: Callable[[Origination], Any]


COMMON_FIELDS = (
    RequiredField("project.address", "Adresse du bien", MissingSeverity.WARN, lambda o: o.address),
    RequiredField("budget.purchase_price", "Prix d'achat", MissingSeverity.BLOCKER, lambda o: o.purchase_price),
    RequiredField("financing.loan_amount", "Montant du prêt", MissingSeverity.BLOCKER, lambda o: o.loan_amount),
    RequiredField(
        "financing.loan_duration_months", "Durée du prêt", MissingSeverity.WARN, lambda o: o.loan_duration_months
    ),
)

PROFILE_FIELDS = {
    BorrowerProfile.INDIVIDUAL: (
        RequiredField("borrower.identity", "Identité emprunteur", MissingSeverity.WARN, lambda o: o.borrower_name),
        RequiredField("revenues.rent_annual", "Revenus annuels", MissingSeverity.WARN, lambda o: o.rent_annual),
    ),
    BorrowerProfile.TRADER: (
        RequiredField("budget.works_budget", "Budget travaux", MissingSeverity.WARN, lambda o: o.works_budget),
        RequiredField("revenues.exit_value", "Valeur de revente", MissingSeverity.BLOCKER, lambda o: o.exit_value),
        RequiredField("project.surface_m2", "Surface (m²)", MissingSeverity.WARN, lambda o: o.surface_m2),
    ),
    BorrowerProfile.DEVELOPER: (
        RequiredField(
            "budget.works_budget", "Budget construction", MissingSeverity.BLOCKER,
            lambda o: _first(o.works_budget, o.construction_cost),
        ),
        RequiredField("budget.land_cost", "Coût foncier", MissingSeverity.WARN, lambda o: o.land_cost),
        RequiredField(
            "revenues.exit_value", "CA prévisionnel", MissingSeverity.BLOCKER,
            lambda o: _first(o.revenue_total, o.exit_value),
        ),
        RequiredField("project.lots", "Nombre de lots", MissingSeverity.INFO, lambda o: o.lots),
        RequiredField("project.surface_m2", "Surface (m²)", MissingSeverity.WARN, lambda o: o.surface_m2),
    ),
    BorrowerProfile.COMPANY: (
        RequiredField("borrower.siren", "SIREN entreprise", MissingSeverity.WARN, lambda o: o.borrower_siren),
        RequiredField("revenues.revenue_total", "CA annuel", MissingSeverity.WARN, lambda o: o.revenue_total),
        RequiredField("budget.total_cost", "Coût total investissement", MissingSeverity.BLOCKER, lambda o: o.total_cost),
    ),
}


def get_required_fields(profile: BorrowerProfile) -> List[RequiredField]:
    return list(COMMON_FIELDS) + list(PROFILE_FIELDS.get(profile, ()))


def _is_blank(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, float) and finite_number(value) is None


def _derive_kpis(budget: OperationBudget, financing: OperationFinancing, revenues: OperationRevenues) -> OperationKpis:
    """
    KPIs computable from typed-in figures, all in percent:
        ltv            loan / exit value, else loan / purchase price
        ltc            loan / total cost
        margin         (exit value - total cost) / total cost
        roi            (exit value - total cost) / equity
        yield_gross    rent / purchase price, 1 decimal
        cash_on_cash   rent / equity, 1 decimal
    """
    kpis = OperationKpis()
    loan = financing.loan_amount
    exit_value = revenues.exit_value
    purchase = budget.purchase_price
    total = budget.total_cost
    rent = revenues.rent_annual
    equity = financing.equity

    if loan and exit_value and exit_value > 0:
        kpis.ltv = round_half_up(loan / exit_value * 100)
    elif loan and purchase and purchase > 0:
        kpis.ltv = round_half_up(loan / purchase * 100)

    if loan and total and total > 0:
        kpis.ltc = round_half_up(loan / total * 100)

    if exit_value and total and total > 0:
        kpis.margin = round_half_up((exit_value - total) / total * 100)
        kpis.margin_net = kpis.margin

    if exit_value and total and equity and equity > 0:
        kpis.roi = round_half_up((exit_value - total) / equity * 100)

    if rent and purchase and purchase > 0:
        kpis.yield_gross = round_half_up(rent / purchase * 1000) / 10

    if rent and equity and equity > 0:
        kpis.cash_on_cash = round_half_up(rent / equity * 1000) / 10

    return kpis


def build_operation_summary(
    dossier: Dossier,
    origination: Origination,
    profile: Union[BorrowerProfile, str, None] = None,
) -> OperationSummary:
    """Build the scoring aggregate from manual inputs only"""
    resolved = detect_profile(origination, dossier, profile)
    o = origination

    surface = finite_number(o.surface_m2)
    project = OperationProject(
        label=_text(dossier.name) or _text(o.project_name),
        operation_type=_text(o.operation_type),
        asset_type=_text(o.asset_type) or _text(o.project_type),
        address=_text(o.address),
        commune_insee=_text(o.commune_insee),
        surface_m2=surface,
        lots=finite_number(o.lots),
        description=_text(o.description),
    )

    # Step 1: budget, total cost summed from its parts when not given
    purchase = finite_number(o.purchase_price)
    parts = [
        purchase,
        finite_number(o.notary_fees),
        _first(o.works_budget, o.construction_cost),
        finite_number(o.soft_costs),
        finite_number(o.holding_costs),
        finite_number(o.contingency),
    ]
    total = finite_number(o.total_cost)
    if total is None:
        summed = sum(p for p in parts if p is not None)
        total = summed if summed > 0 else None

    budget = OperationBudget(
        purchase_price=purchase,
        notary_fees=parts[1],
        works_budget=parts[2],
        soft_costs=parts[3],
        holding_costs=parts[4],
        contingency=parts[5],
        land_cost=finite_number(o.land_cost),
        construction_cost=finite_number(o.construction_cost),
        total_cost=total,
        cost_per_sqm=round_half_up(total / surface) if total and surface else None,
    )

    # Step 2: financing and revenues
    financing = OperationFinancing(
        loan_amount=finite_number(o.loan_amount),
        loan_duration_months=finite_number(o.loan_duration_months),
        loan_type=_text(o.loan_type),
        interest_rate=finite_number(o.interest_rate),
        equity=finite_number(o.equity),
        insurance_cost=finite_number(o.insurance_cost),
    )

    rent = finite_number(o.rent_annual)
    revenues = OperationRevenues(
        strategy=_text(o.exit_strategy),
        exit_value=_first(o.exit_value, o.revenue_total),
        rent_annual=rent,
        rent_per_sqm=round_half_up(rent / surface) if rent and surface else None,
        occupancy_rate=finite_number(o.occupancy_rate),
        revenue_total=finite_number(o.revenue_total),
    )

    # Step 3: documents and guarantees from the dossier itself
    completeness = compute_completeness(dossier, get_required_documents(dossier.project_type))
    coverage = sum(finite_number(g.amount) or 0 for g in dossier.guarantees)
    documents = DocumentsSnapshot(completeness=completeness.percentage, items=list(dossier.documents))
    guarantees = GuaranteesSnapshot(items=list(dossier.guarantees), total_coverage=coverage if coverage > 0 else None)

    # Step 4: missing data
    missing = [
        MissingItem(f.key, f.label, f.severity) for f in get_required_fields(resolved) if _is_blank(f.extract(o))
    ]
    if guarantees.total_coverage is None:
        missing.append(MissingItem("guarantees.total_coverage", "Couverture garanties", MissingSeverity.WARN))
    if completeness.percentage < DOCUMENTS_COMPLETENESS_FLOOR:
        missing.append(MissingItem("documents.completeness", "Complétude documentaire", MissingSeverity.WARN))

    summary = OperationSummary(
        meta=OperationMeta(profile=resolved, created_at=utc_now_iso(), source="manual"),
        dossier_id=dossier.id,
        project=project,
        budget=budget,
        financing=financing,
        revenues=revenues,
        kpis=_derive_kpis(budget, financing, revenues),
        documents=documents,
        guarantees=guarantees,
        missing=missing,
    )
    logger.debug(
        "Operation summary built",
        extra={"dossier_id": dossier.id, "profile": resolved.value, "missing_count": len(missing)},
    )
    return summary
