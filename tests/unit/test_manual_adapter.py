"""Unit tests for the manual-entry adapter"""

import pytest

from credit_committee.adapters.manual import Origination, build_operation_summary, detect_profile, get_required_fields
from credit_committee.domain.models import Dossier, ProjectType
from credit_committee.domain.operation import BorrowerProfile, MissingSeverity


@pytest.mark.parametrize(
    "project_type,expected",
    [
        (ProjectType.DEVELOPER, BorrowerProfile.DEVELOPER),
        (ProjectType.TRADER, BorrowerProfile.TRADER),
        (ProjectType.BASELINE, BorrowerProfile.INDIVIDUAL),
    ],
)
def test_profile_from_project_type(project_type, expected):
    dossier = Dossier(id="d", name="D", project_type=project_type)
    assert detect_profile(Origination(borrower_type="personne_morale"), dossier) == expected


def test_profile_resolution_order():
    assert detect_profile(Origination(profile="marchand"), explicit="promoteur") == BorrowerProfile.DEVELOPER
    assert detect_profile(Origination(profile="marchand"), explicit="hotelier") == BorrowerProfile.TRADER
    assert detect_profile(Origination(borrower_type="personne_morale")) == BorrowerProfile.COMPANY
    assert detect_profile(Origination()) == BorrowerProfile.INDIVIDUAL


def test_required_fields_extend_common_ones():
    keys = [f.key for f in get_required_fields(BorrowerProfile.DEVELOPER)]

    assert keys[:4] == [
        "project.address",
        "budget.purchase_price",
        "financing.loan_amount",
        "financing.loan_duration_months",
    ]
    assert "budget.land_cost" in keys
    assert len(keys) == 9


def test_complete_manual_entry(complete_dossier: Dossier):
    origination = Origination(
        address="3 rue de la République, Lyon",
        surface_m2=75,
        purchase_price=250_000,
        notary_fees=20_000,
        works_budget=30_000,
        loan_amount=200_000,
        loan_duration_months=240,
        equity=100_000,
        borrower_name="M. Durand",
        rent_annual=15_000,
    )

    operation = build_operation_summary(complete_dossier, origination)

    assert operation.profile == BorrowerProfile.INDIVIDUAL
    assert operation.dossier_id == "dos-complete"
    assert operation.meta.source == "manual"
    assert operation.project.label == "Résidence Les Tilleuls"
    assert operation.budget.total_cost == 300_000
    assert operation.budget.cost_per_sqm == 4_000
    assert operation.revenues.rent_per_sqm == 200
    assert operation.kpis.ltv == 80  # no exit value, so loan / purchase price
    assert operation.kpis.ltc == 67
    assert operation.kpis.yield_gross == 6.0
    assert operation.kpis.cash_on_cash == 15.0
    assert operation.kpis.margin is None
    assert operation.documents.completeness == 100
    assert operation.guarantees.total_coverage == 400_000
    assert operation.missing == []


def test_resale_kpis_prefer_exit_value():
    dossier = Dossier(id="d", name="Plateau", project_type=ProjectType.TRADER)
    origination = Origination(purchase_price=400_000, total_cost=500_000, loan_amount=300_000, equity=200_000, exit_value=600_000)

    kpis = build_operation_summary(dossier, origination).kpis

    assert kpis.ltv == 50
    assert kpis.ltc == 60
    assert kpis.margin == 20
    assert kpis.margin_net == 20
    assert kpis.roi == 50


def test_blank_entry_lists_missing_fields(empty_dossier: Dossier):
    operation = build_operation_summary(empty_dossier, Origination())

    assert [(m.key, m.severity) for m in operation.missing] == [
        ("project.address", MissingSeverity.WARN),
        ("budget.purchase_price", MissingSeverity.BLOCKER),
        ("financing.loan_amount", MissingSeverity.BLOCKER),
        ("financing.loan_duration_months", MissingSeverity.WARN),
        ("borrower.identity", MissingSeverity.WARN),
        ("revenues.rent_annual", MissingSeverity.WARN),
        ("guarantees.total_coverage", MissingSeverity.WARN),
        ("documents.completeness", MissingSeverity.WARN),
    ]
    assert operation.budget.total_cost is None
    assert operation.kpis.ltv is None
