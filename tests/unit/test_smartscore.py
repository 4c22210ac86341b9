"""Unit tests for the SmartScore engine"""

from dataclasses import replace
from datetime import date

import pytest

from credit_committee.domain.exceptions import UnknownProfileError
from credit_committee.domain.models import Document, DocumentStatus
from credit_committee.domain.operation import (
    BorrowerProfile,
    DocumentsSnapshot,
    GeoRiskSummary,
    MissingItem,
    MissingSeverity,
    OperationBudget,
    OperationCalendar,
    OperationKpis,
    OperationMeta,
    OperationRisks,
    OperationSummary,
    RiskItem,
)
from credit_committee.domain.profiles import PillarKey
from credit_committee.domain.smartscore import (
    Grade,
    ScoreVerdict,
    build_verdict_explanation,
    clean_missing,
    compute_smartscore,
    score_documents,
    score_planning,
    score_ratios,
    score_risks,
)

AS_OF = date(2026, 1, 10)


def _operation(profile=BorrowerProfile.INDIVIDUAL, **kwargs) -> OperationSummary:
    return OperationSummary(meta=OperationMeta(profile=profile), **kwargs)


def _pillar(result, key: PillarKey):
    return next(p for p in result.pillars if p.key == key)


def test_empty_operation_is_insufficient_data():
    """Test every critical pillar without data becomes a blocker"""
    result = compute_smartscore(_operation(), as_of=AS_OF)

    assert result.score == 0
    assert result.grade == Grade.E
    assert result.verdict == ScoreVerdict.INSUFFICIENT_DATA
    assert result.blockers == [
        "Pilier critique sans données: Documentation",
        "Pilier critique sans données: Garanties",
        "Pilier critique sans données: Budget",
        "Pilier critique sans données: Revenus / Capacité",
        "Pilier critique sans données: Marché",
        "Pilier critique sans données: Ratios",
    ]
    assert all(not p.has_data for p in result.pillars)


def test_developer_operation_pillars(developer_operation: OperationSummary):
    result = compute_smartscore(developer_operation, as_of=AS_OF)

    assert result.profile == BorrowerProfile.DEVELOPER
    assert _pillar(result, PillarKey.GUARANTEES).raw_score == 90
    assert _pillar(result, PillarKey.BUDGET).raw_score == 90
    assert _pillar(result, PillarKey.BUDGET).points == 16
    assert _pillar(result, PillarKey.REVENUES).raw_score == 65
    assert _pillar(result, PillarKey.MARKET).raw_score == 70
    assert _pillar(result, PillarKey.RATIOS).raw_score == 80
    assert _pillar(result, PillarKey.RATIOS).reasons == ["LTV excellent: 53%", "Marge forte: 30%"]
    assert "Définir des scénarios base/stress/upside — requis pour le comité" in result.recommendations


def test_missing_risk_analysis_blocks_developer(developer_operation: OperationSummary):
    """Test a weighted pillar without data blocks the verdict but not the score"""
    result = compute_smartscore(developer_operation, as_of=AS_OF)

    assert result.blockers == ["Pilier critique sans données: Risques"]
    assert result.verdict == ScoreVerdict.INSUFFICIENT_DATA
    assert result.score == sum(p.points for p in result.pillars)


def test_enriched_developer_operation_is_favorable(developer_operation: OperationSummary):
    operation = replace(developer_operation, risks=OperationRisks(geo=GeoRiskSummary(score=80)))

    result = compute_smartscore(operation, as_of=AS_OF)

    assert result.blockers == []
    assert result.score == 71
    assert result.grade == Grade.B
    assert result.verdict == ScoreVerdict.FAVORABLE


def test_score_is_sum_of_points_minus_penalties(developer_operation: OperationSummary):
    operation = replace(
        developer_operation,
        risks=OperationRisks(geo=GeoRiskSummary(score=80)),
        missing=[
            MissingItem("revenues.scenarios", "Scénarios", MissingSeverity.WARN),
            MissingItem("project.lots", "Nombre de lots", MissingSeverity.INFO),
        ],
    )

    result = compute_smartscore(operation, as_of=AS_OF)

    assert [p.key for p in result.missing_penalties] == ["revenues.scenarios"]
    assert result.total_missing_penalty == 3
    assert result.score == sum(p.points for p in result.pillars) - 3


def test_blocker_missing_item_forces_insufficient_data():
    operation = _operation(
        budget=OperationBudget(purchase_price=250_000),
        missing=[MissingItem("financing.loan_amount", "Montant du prêt", MissingSeverity.BLOCKER)],
    )

    result = compute_smartscore(operation, as_of=AS_OF)

    assert result.missing_penalties[0].points == 6
    assert "Donnée bloquante manquante: Montant du prêt" in result.blockers
    assert result.verdict == ScoreVerdict.INSUFFICIENT_DATA
    assert result.recommendations[0] == "Renseigner en priorité: Montant du prêt"


def test_score_bounds_and_point_caps(developer_operation: OperationSummary):
    result = compute_smartscore(developer_operation, as_of=AS_OF)

    assert 0 <= result.score <= 100
    for pillar in result.pillars:
        assert 0 <= pillar.raw_score <= 100
        assert 0 <= pillar.points <= pillar.max_points


def test_unknown_profile_is_rejected():
    with pytest.raises(UnknownProfileError):
        compute_smartscore(_operation(profile="hotelier"))


# ════════════════════════════════════════════════════════════════════
# Missing-data cleanup
# ════════════════════════════════════════════════════════════════════


def test_clean_missing_drops_satisfied_items():
    operation = _operation(
        budget=OperationBudget(purchase_price=300_000),
        risks=OperationRisks(geo=GeoRiskSummary(score=70)),
        missing=[
            MissingItem("budget.purchase_price", "Prix d'achat", MissingSeverity.BLOCKER),
            MissingItem("budget", "Budget", MissingSeverity.WARN),
            MissingItem("risks.geo.score", "Score géorisques", MissingSeverity.WARN),
            MissingItem("budget.total_cost", "Coût total", MissingSeverity.WARN),
            MissingItem("market.price_per_sqm", "Prix marché", MissingSeverity.WARN),
        ],
    )

    cleaned = clean_missing(operation)

    assert [m.key for m in cleaned] == ["budget.total_cost", "market.price_per_sqm"]


def test_clean_missing_keeps_everything_when_nothing_present():
    items = [MissingItem("kpis.ltv", "LTV", MissingSeverity.WARN)]
    assert clean_missing(_operation(missing=items)) == items


# ════════════════════════════════════════════════════════════════════
# Pillar scorers
# ════════════════════════════════════════════════════════════════════


def test_documents_pillar_counts_items_and_refusals():
    operation = _operation(
        documents=DocumentsSnapshot(
            items=[
                Document("a", "A", status=DocumentStatus.SUPPLIED),
                Document("b", "B", status=DocumentStatus.SUPPLIED),
                Document("c", "C", status=DocumentStatus.REFUSED),
                Document("d", "D", status=DocumentStatus.PENDING),
            ]
        )
    )

    score = score_documents(operation, BorrowerProfile.INDIVIDUAL, AS_OF)

    assert score.raw == 40  # 50% supplied, -10 per refusal
    assert score.reasons == ["1 document(s) refusé(s)", "Complétude faible: 40%"]


def test_risk_pillar_caps_flood_zones():
    operation = _operation(risks=OperationRisks(geo=GeoRiskSummary(score=90, risk_count=2, has_flood=True)))

    score = score_risks(operation, BorrowerProfile.INDIVIDUAL, AS_OF)

    assert score.raw == 60
    assert "Zone inondable identifiée" in score.reasons


def test_risk_pillar_from_item_lists():
    operation = _operation(
        risks=OperationRisks(
            geo=[
                RiskItem("geo", "Inondation", level="élevé", status="present"),
                RiskItem("geo", "Retrait-gonflement argiles", level="moyen", status="present"),
                RiskItem("geo", "Radon", level="inconnu", status="unknown"),
            ]
        )
    )

    score = score_risks(operation, BorrowerProfile.INDIVIDUAL, AS_OF)

    assert score.raw == 77  # 100 - 15 - 5 - 3
    assert score.reasons[0] == "1 risque(s) élevé(s): Inondation"


@pytest.mark.parametrize(
    "acquisition,expected_raw,expected_reason",
    [
        ("2026-03-15", 75, "Acquisition imminente (< 3 mois)"),
        ("2026-08-01", 75, "Acquisition dans ~7 mois"),
        ("2027-06-01", 70, "Acquisition lointaine (~17 mois)"),
        ("2025-11-20", 65, "Date d'acquisition passée"),
        ("bientot", 75, "Date d'acquisition renseignée"),
    ],
)
def test_planning_pillar_uses_reference_date(acquisition, expected_raw, expected_reason):
    operation = _operation(calendar=OperationCalendar(acquisition_date=acquisition))

    score = score_planning(operation, BorrowerProfile.INDIVIDUAL, AS_OF)

    assert score.raw == expected_raw
    assert score.reasons == [expected_reason]


def test_ratio_pillar_flags_excessive_debt_ratio():
    operation = _operation(kpis=OperationKpis(ltv=90, dsti=48, dscr=1.1))

    score = score_ratios(operation, BorrowerProfile.INDIVIDUAL, AS_OF)

    assert score.raw == 25  # 50 - 5 - 10 - 10
    assert "DSTI > 45% — dépassement seuil HCSF, risque de refus" in score.actions


# ════════════════════════════════════════════════════════════════════
# Explanation
# ════════════════════════════════════════════════════════════════════


def test_verdict_explanation(developer_operation: OperationSummary):
    result = compute_smartscore(developer_operation, as_of=AS_OF)

    lines = build_verdict_explanation(result).split("\n")

    assert lines[0] == f"Score: {result.score}/100 (C) — Verdict: données_insuffisantes"
    assert lines[1] == "Profil: promoteur"
    assert lines[2].startswith("Points forts: Documentation (85/100), Garanties (90/100)")
    assert lines[-1] == "⛔ Blockers: Pilier critique sans données: Risques"
