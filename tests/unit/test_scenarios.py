"""Unit tests for the decision scenario generator"""

from credit_committee.domain.report import ReportInput, ReportKpis
from credit_committee.domain.scenarios import ScenarioKey, build_decision_scenarios


def test_conservative_stance_comes_first(healthy_report: ReportInput):
    scenarios = build_decision_scenarios(healthy_report)

    assert [s.key for s in scenarios] == [ScenarioKey.CONSERVATIVE, ScenarioKey.BALANCED, ScenarioKey.OPPORTUNISTIC]
    assert [s.label for s in scenarios] == ["Conservateur", "Equilibre", "Opportuniste"]


def test_healthy_report_goes_everywhere(healthy_report: ReportInput):
    conservative, balanced, opportunistic = build_decision_scenarios(healthy_report)

    assert (conservative.decision, conservative.confidence) == ("GO", 75)
    assert conservative.pros == [
        "Couverture de dette satisfaisante (DSCR 1.60)",
        "Levier contenu (LTV 45%)",
        "Marche porteur (score 100/100)",
        "SmartScore solide (78/100)",
        "Pilier fort : Garanties",
        "Pilier fort : Marché",
    ]
    assert conservative.cons == ["Aucun point defavorable majeur"]
    assert (balanced.decision, balanced.confidence) == ("GO", 80)
    assert (opportunistic.decision, opportunistic.confidence) == ("GO patrimonial", 75)
    assert opportunistic.targets == ["Valorisation patrimoniale long terme", "Capitaliser sur le rendement locatif"]


def test_fragile_report_is_refused(fragile_report: ReportInput):
    conservative, balanced, opportunistic = build_decision_scenarios(fragile_report)

    # DSCR 0.85 sits above the 0.8 high-confidence cut
    assert (conservative.decision, conservative.confidence) == ("NO GO", 70)
    assert conservative.pros == ["Aucun point favorable majeur identifie"]
    assert conservative.cons == [
        "DSCR insuffisant (0.85)",
        "LTV eleve (85%)",
        "3 donnee(s) manquante(s)",
        "Pilier faible : Garanties",
        "Pilier faible : Revenus & Sortie",
    ]
    assert conservative.targets == [
        "Restructurer le plan de financement",
        "Amener le DSCR au-dessus de 1.0",
        "Completer les donnees manquantes",
    ]
    assert (balanced.decision, balanced.confidence) == ("NO GO", 75)
    assert balanced.targets == ["Revoir le plan de financement"]
    assert (opportunistic.decision, opportunistic.confidence) == ("GO sous conditions", 60)
    assert opportunistic.conditions == [
        "Bail commercial",
        "Avis de valeur",
        "Bilans N-1",
        "Renforcer l'apport pour reduire le LTV",
    ]
    assert opportunistic.targets == ["Valorisation patrimoniale long terme"]


def test_deep_coverage_deficit_raises_confidence():
    report = ReportInput(programme_name="X", kpis=ReportKpis(dscr=0.7))

    conservative = build_decision_scenarios(report)[0]

    assert (conservative.decision, conservative.confidence) == ("NO GO", 85)


def test_strict_conditions_on_gaps_and_leverage():
    report = ReportInput(programme_name="X", kpis=ReportKpis(ltv=65, dscr=1.3), missing=["Bail"])

    conservative, balanced, _ = build_decision_scenarios(report)

    assert (conservative.decision, conservative.confidence) == ("GO sous conditions strictes", 55)
    assert conservative.conditions == ["Bail", "Reduire le LTV sous 60%"]
    assert conservative.targets == ["Levee integrale des conditions avant engagement"]
    assert (balanced.decision, balanced.confidence) == ("GO sous conditions", 65)
    assert balanced.conditions == ["Bail"]


def test_modest_smartscore_adds_quarterly_follow_up():
    report = ReportInput(programme_name="X", kpis=ReportKpis(ltv=55, dscr=1.1))

    conservative, balanced, _ = build_decision_scenarios(report)

    assert (conservative.decision, conservative.confidence) == ("GO sous conditions", 60)
    assert conservative.conditions == ["Suivi trimestriel renforce"]
    assert balanced.conditions == ["Suivi DSCR semestriel"]
