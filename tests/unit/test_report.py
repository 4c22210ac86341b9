"""Unit tests for the report input projection"""

import math
from dataclasses import replace
from datetime import date

from credit_committee.domain.operation import (
    Commune,
    DvfData,
    DvfStats,
    GeoRiskSummary,
    MissingItem,
    MissingSeverity,
    OperationRisks,
    OperationSummary,
)
from credit_committee.domain.report import (
    MarketInsight,
    MarketStudy,
    ReportInput,
    ReportKpis,
    build_report_input,
    gross_yield,
    market_global_score,
    strong_pillars,
    weak_pillars,
    yield_from,
)
from credit_committee.domain.smartscore import compute_smartscore


def test_yield_is_absent_never_zero():
    assert yield_from(48_000, 600_000) == 8.0
    assert yield_from(None, 600_000) is None
    assert yield_from(48_000, 0) is None
    assert yield_from(math.nan, 600_000) is None


def test_report_guards_non_finite_kpis():
    report = ReportInput(programme_name="X", kpis=ReportKpis(dscr=math.nan, ltv=math.inf, gross_margin="12"))

    assert report.dscr is None
    assert report.ltv is None
    assert report.margin == 12.0
    assert report.smartscore_value is None


def test_market_global_score(healthy_report: ReportInput):
    assert market_global_score(healthy_report) == 100

    mixed = replace(
        healthy_report,
        market_study=MarketStudy(
            insights=[
                MarketInsight("Prix", 4_000, "positive"),
                MarketInsight("Chômage", 14.2, "negative"),
                MarketInsight("Vacance", 9.0, "negative"),
                MarketInsight("Transport", "moyen", "neutral"),
            ]
        ),
    )
    # (1 - 1.4) / 4 * 100 + 50 = 40
    assert market_global_score(mixed) == 40


def test_market_global_score_absent_without_insights(fragile_report: ReportInput):
    assert market_global_score(fragile_report) is None
    assert market_global_score(replace(fragile_report, market_study=MarketStudy())) is None


def test_pillar_strength_buckets(healthy_report: ReportInput, fragile_report: ReportInput):
    assert strong_pillars(healthy_report) == ["Garanties", "Marché"]
    assert weak_pillars(healthy_report) == []
    assert weak_pillars(fragile_report) == ["Garanties", "Revenus & Sortie"]
    assert gross_yield(fragile_report) == 3.0


def test_build_report_input_from_operation(developer_operation: OperationSummary):
    operation = replace(
        developer_operation,
        risks=OperationRisks(geo=GeoRiskSummary(score=80)),
        dvf=DvfData(stats=DvfStats(transactions_count=42, price_median_eur_m2=4_300, evolution_pct=2.5)),
        missing=[
            MissingItem("budget.total_cost", "Coût total", MissingSeverity.WARN),
            MissingItem("project.lots", "Nombre de lots", MissingSeverity.INFO),
        ],
    )
    operation.market.commune = Commune(name="Nantes", population=320_000, department="44")
    result = compute_smartscore(operation, as_of=date(2026, 1, 10))

    report = build_report_input("Les Jardins de l'Erdre", operation, result)

    assert report.programme_name == "Les Jardins de l'Erdre"
    assert report.smartscore.score == result.score
    assert report.smartscore.pillars[0].id == "documents"
    assert report.kpis.ltv == 53
    assert report.kpis.gross_margin == 30
    assert report.kpis.total_cost == 2_310_000
    # budget.total_cost is present, so only the lots item survives cleanup
    assert report.missing == ["Nombre de lots"]
    study = report.market_study
    assert study.commune == "Nantes"
    assert study.department == "44"
    assert study.dvf.price_m2_median == 4_300
    assert study.dvf.transactions == 42
    assert study.insee.population == 320_000


def test_build_report_input_without_smartscore(developer_operation: OperationSummary):
    report = build_report_input("X", developer_operation, None, address="1 quai de la Fosse")

    assert report.smartscore is None
    assert report.address == "1 quai de la Fosse"
    # market price only, no DVF block
    assert report.market_study.dvf.price_m2_median == 4_200
    assert report.market_study.dvf.transactions == 24
