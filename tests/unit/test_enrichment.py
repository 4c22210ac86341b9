"""Unit tests for the enrichment adapter"""

import math
from datetime import date

import pytest

from credit_committee.adapters.enrichment import (
    has_enriched_data,
    merge_dvf_sources,
    normalize_dvf,
    normalize_market,
    normalize_operation,
    normalize_risks,
)
from credit_committee.domain.operation import (
    BorrowerProfile,
    DvfComparable,
    DvfData,
    DvfStats,
    GeoRiskSummary,
    MissingItem,
    MissingSeverity,
    OperationMeta,
    OperationRisks,
    OperationSummary,
    PropertyCondition,
    RiskItem,
)
from credit_committee.domain.smartscore import score_feasibility, score_risks

AS_OF = date(2026, 1, 10)


class TestNormalizeRisks:
    """Tests for the risk payload shapes"""

    def test_normalized_geo_block(self):
        risks = normalize_risks({"geo": {"score": 72, "riskCount": 2, "hasFlood": True}})

        assert risks.geo == GeoRiskSummary(score=72, risk_count=2, has_flood=True)

    def test_legacy_item_lists(self):
        risks = normalize_risks(
            {
                "geo": [{"label": "Inondation", "level": "élevé", "status": "present"}, "Radon"],
                "urbanisme": [{"libelle": "PPRI", "niveau": "moyen"}],
            }
        )

        assert risks.geo == [
            RiskItem("geo", "Inondation", level="élevé", status="present"),
            RiskItem("geo", "Radon"),
        ]
        assert risks.urbanism == [RiskItem("urbanisme", "PPRI", level="moyen")]

    def test_wrapped_flat_payload(self):
        risks = normalize_risks(
            {
                "data": {
                    "score_global": 35,
                    "risques_naturels": [{"libelle": "Inondation par crue"}, "Sismicité modérée"],
                    "risques_techno": ["SEVESO"],
                }
            }
        )

        assert risks.geo == GeoRiskSummary(score=35, risk_count=3, has_flood=True, has_seismic=True, label="Élevé")
        assert risks.score == 35

    def test_flat_payload_without_score_defaults(self):
        risks = normalize_risks({"risks": ["Radon"]})

        assert risks.geo.score == 50
        assert risks.geo.label == "Modéré"
        assert risks.geo.risk_count == 1

    @pytest.mark.parametrize("score", [math.nan, math.inf, -math.inf])
    def test_non_finite_geo_score_is_absent(self, score):
        risks = normalize_risks({"geo": {"score": score, "riskCount": 0}, "sources": ["Géorisques"]})

        assert risks.geo is None
        assert risks.sources == ["Géorisques"]

    @pytest.mark.parametrize("score", [math.nan, math.inf])
    def test_non_finite_geo_score_does_not_score(self, score):
        operation = normalize_operation({"profile": "promoteur", "risks": {"geo": {"score": score}}})

        pillar = score_risks(operation, BorrowerProfile.DEVELOPER, AS_OF)

        assert pillar.has_data is False
        assert pillar.raw == 0
        assert not has_enriched_data(operation)

    def test_nothing_usable(self):
        assert normalize_risks(None) is None
        assert normalize_risks({}) is None


class TestNormalizeDvf:
    """Tests for the DVF payload shapes"""

    def test_stats_and_comparables(self):
        dvf = normalize_dvf(
            {
                "stats": {"prix_m2_median": 3_900},
                "comparables": [{"date_mutation": "2025-03-01", "valeur_fonciere": 250_000, "surface_reelle_bati": 60}],
            }
        )

        assert dvf.stats.transactions_count == 0
        assert dvf.stats.price_median_eur_m2 == 3_900
        assert dvf.comparables == [DvfComparable(date="2025-03-01", price=250_000, surface=60)]

    def test_nested_dvf_key(self):
        assert normalize_dvf({"dvf": {"stats": {"nb_transactions": 18}}}).stats.transactions_count == 18

    def test_transaction_list(self):
        transactions = [{"valeur_fonciere": 100_000 + i} for i in range(12)]

        dvf = normalize_dvf({"transactions": transactions, "medianPriceM2": 4_100, "evolution_pct": 4})

        assert dvf.stats.transactions_count == 12
        assert dvf.stats.price_median_eur_m2 == 4_100
        assert dvf.stats.evolution_pct is None
        assert len(dvf.comparables) == 10

    def test_flat_stats(self):
        dvf = normalize_dvf({"nb_transactions": 40, "prix_m2_median": 3_500})

        assert dvf.stats == DvfStats(transactions_count=40, price_median_eur_m2=3_500)

    def test_unrecognized_shape(self):
        assert normalize_dvf({"foo": 1}) is None
        assert normalize_dvf("dvf") is None


def test_merge_dvf_sources_fills_gaps_in_order():
    first = DvfData(stats=DvfStats(transactions_count=0, price_median_eur_m2=4_000))
    second = DvfData(
        stats=DvfStats(transactions_count=33, price_median_eur_m2=3_800, evolution_pct=2.0),
        comparables=[DvfComparable(price=210_000)],
    )

    merged = merge_dvf_sources(None, first, second)

    # a zero transaction count is a gap
    assert merged.stats.transactions_count == 33
    assert merged.stats.price_median_eur_m2 == 4_000
    assert merged.stats.evolution_pct == 2.0
    assert merged.comparables == [DvfComparable(price=210_000)]
    assert merge_dvf_sources(None, None) is None


class TestNormalizeMarket:
    """Tests for the market payload shapes"""

    def test_commune_block(self):
        market = normalize_market(
            {
                "data": {
                    "commune": {"nom": "Nantes", "population": 320_000, "departement": "Loire-Atlantique"},
                    "dvf": {"prix_m2_median": 4_300, "nb_transactions": 210},
                    "indices": {"demand": 68},
                    "transport": {"stations": 4},
                }
            }
        )

        assert market.commune.name == "Nantes"
        assert market.commune.department == "Loire-Atlantique"
        assert (market.price_per_sqm, market.demand_index, market.comps_count) == (4_300, 68, 210)
        assert market.sources == ["DVF", "INSEE", "Transport"]
        assert market.extras["transport"] == {"stations": 4}

    def test_demographics_block(self):
        market = normalize_market({"insee": {"nom_commune": "Rennes", "population": 220_000, "revenu_median": 23_500}})

        assert market.commune.name == "Rennes"
        assert market.commune.population == 220_000
        assert market.revenue_median == 23_500

    def test_flat_prices(self):
        market = normalize_market({"price_per_sqm": 3_000, "demandIndex": 55})

        assert market.commune is None
        assert (market.price_per_sqm, market.demand_index) == (3_000, 55)

    def test_nothing_usable(self):
        assert normalize_market({"foo": 1}) is None


def test_normalize_operation_from_camel_case_payload():
    payload = {
        "dossierId": "dos-1",
        "profile": "marchand",
        "budget": {"purchasePrice": 300_000, "totalCost": "350000"},
        "kpis": {"ltv": 70, "margin": "NaN"},
        "risks": {"geo": {"score": 60}},
        "dvf": {"stats": {"nb_transactions": 0}},
        "market": {"price_per_sqm": 3_150, "dvf": {"stats": {"nb_transactions": 25, "prix_m2_median": 3_100}}},
        "missing": [
            {"key": "budget.worksBudget", "label": "Travaux", "severity": "blocker"},
            {"key": "x", "severity": "bogus"},
            {"label": "sans clé"},
        ],
    }

    operation = normalize_operation(payload)

    assert operation.dossier_id == "dos-1"
    assert operation.profile == BorrowerProfile.TRADER
    assert operation.budget.purchase_price == 300_000
    assert operation.budget.total_cost == 350_000
    assert operation.kpis.ltv == 70
    assert operation.kpis.margin is None
    assert operation.risks.geo.score == 60
    assert operation.dvf.stats.transactions_count == 25
    assert operation.dvf.stats.price_median_eur_m2 == 3_100
    assert operation.market.price_per_sqm == 3_150
    assert operation.missing == [
        MissingItem("budget.works_budget", "Travaux", MissingSeverity.BLOCKER),
        MissingItem("x", "x", MissingSeverity.WARN),
    ]


def test_normalize_operation_overlays_original(developer_operation: OperationSummary):
    operation = normalize_operation({"kpis": {"dscr": 1.3}}, original=developer_operation)

    assert operation.profile == BorrowerProfile.DEVELOPER
    assert operation.dossier_id == "dos-promo"
    assert operation.budget == developer_operation.budget
    assert operation.kpis.dscr == 1.3
    assert operation.kpis.ltv is None


def test_unknown_profile_is_kept_verbatim():
    assert normalize_operation({"profile": "hotelier"}).profile == "hotelier"
    assert normalize_operation({}).profile == BorrowerProfile.INDIVIDUAL


def test_has_enriched_data():
    bare = OperationSummary(meta=OperationMeta(profile=BorrowerProfile.INDIVIDUAL))

    assert not has_enriched_data(bare)
    assert has_enriched_data(OperationSummary(meta=bare.meta, risks=OperationRisks(geo=GeoRiskSummary(score=70))))
    assert not has_enriched_data(OperationSummary(meta=bare.meta, risks=OperationRisks(geo=[RiskItem("geo", "Radon")])))
    assert not has_enriched_data(OperationSummary(meta=bare.meta, dvf=DvfData(stats=DvfStats(transactions_count=0))))
    assert has_enriched_data(OperationSummary(meta=bare.meta, dvf=DvfData(stats=DvfStats(transactions_count=5))))


def test_property_block_feeds_feasibility():
    operation = normalize_operation({"profile": "marchand", "property": {"ageCategory": "neuf", "condition": "bon"}})

    assert operation.property_condition == PropertyCondition(age_category="neuf", condition="bon")
    # 65 of the 80 property-only points, rescaled
    assert score_feasibility(operation, BorrowerProfile.TRADER, AS_OF).raw == 81
