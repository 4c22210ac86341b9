"""Unit tests for the risk/return matrix"""

from dataclasses import replace

from credit_committee.domain.matrix import DominantRisk, Quadrant, build_risk_return_matrix, resolve_dominant_risk
from credit_committee.domain.report import (
    DvfSnapshot,
    MarketStudy,
    ReportInput,
    ReportKpis,
    ReportPillar,
    ReportSmartScore,
)


def test_healthy_report_is_optimal(healthy_report: ReportInput):
    matrix = build_risk_return_matrix(healthy_report)

    assert matrix.risk_score == 18
    assert matrix.return_score == 88
    assert matrix.quadrant == Quadrant.OPTIMAL
    assert matrix.dominant_risk == DominantRisk.NONE
    assert matrix.dominant_risk_label == "Aucun risque dominant identifie"
    assert matrix.commentary == (
        "Le dossier se positionne dans le cadran optimal avec un bon equilibre rendement/risque. "
        "Le rendement brut de 8.0% est un atout majeur."
    )


def test_fragile_report_is_unfavorable(fragile_report: ReportInput):
    matrix = build_risk_return_matrix(fragile_report)

    assert matrix.risk_score == 98
    assert matrix.return_score == 30
    assert matrix.quadrant == Quadrant.UNFAVORABLE
    assert matrix.dominant_risk == DominantRisk.DSCR_DEFICIT
    assert matrix.dominant_risk_label == "Deficit de couverture de dette (DSCR 0.85)"
    assert matrix.commentary.startswith("Le profil risque/rendement est defavorable")
    assert "Le LTV de 85% pese sur le score de risque." in matrix.commentary
    assert "(score 98/100)" in matrix.commentary
    assert matrix.commentary.endswith("le dossier ne resisterait pas a une hausse de taux.")


def test_commentary_stops_at_five_sentences():
    report = ReportInput(
        programme_name="X",
        kpis=ReportKpis(ltv=85, dscr=0.9, annual_rent=42_000, total_cost=1_000_000, gross_margin=2),
    )

    matrix = build_risk_return_matrix(report)

    assert "En stress loyers -10%, le rendement tombe a 3.8%" in matrix.commentary
    assert "Le couple rendement/risque est defavorable" in matrix.commentary
    # the rate-shock sentence would be the sixth
    assert "En stress taux +1%" not in matrix.commentary


def test_empty_report_is_intermediate():
    matrix = build_risk_return_matrix(ReportInput(programme_name="Vide"))

    assert (matrix.risk_score, matrix.return_score) == (50, 40)
    assert matrix.quadrant == Quadrant.INTERMEDIATE
    assert matrix.commentary == (
        "Le profil risque/rendement se situe dans une zone intermediaire qui appelle a un examen attentif."
    )


def test_dominant_risk_waterfall():
    base = ReportInput(programme_name="X")

    assert resolve_dominant_risk(replace(base, kpis=ReportKpis(ltv=85, dscr=1.2))) == (
        DominantRisk.LTV_CRITICAL,
        "Exposition bancaire critique (LTV 85%)",
    )
    thin_market = replace(base, market_study=MarketStudy(dvf=DvfSnapshot(transactions=12)), missing=["a", "b", "c"])
    assert resolve_dominant_risk(thin_market) == (
        DominantRisk.LIQUIDITY_LOW,
        "Marche peu liquide (12 transactions DVF)",
    )
    weak_guarantees = replace(
        base,
        smartscore=ReportSmartScore(score=50, verdict="réservé", pillars=[ReportPillar("g", "Garanties", 15)]),
        missing=["a", "b", "c"],
    )
    assert resolve_dominant_risk(weak_guarantees)[0] == DominantRisk.GUARANTEES_MISSING
    assert resolve_dominant_risk(replace(base, missing=["a", "b", "c"])) == (
        DominantRisk.DATA_MISSING,
        "Donnees manquantes significatives (3 elements)",
    )
    assert resolve_dominant_risk(replace(base, missing=["a", "b"]))[0] == DominantRisk.NONE
