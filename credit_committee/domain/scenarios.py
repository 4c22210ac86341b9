"""Decision scenario generator - conservative, balanced and opportunistic committee stances"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from credit_committee.domain.numeric import format_fixed, format_number
from credit_committee.domain.report import (
    ReportInput,
    gross_yield,
    market_global_score,
    strong_pillars,
    weak_pillars,
)


class ScenarioKey(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    OPPORTUNISTIC = "opportunistic"


@dataclass
class DecisionScenario:
    key: ScenarioKey
    label: str
    decision: str
    confidence: int
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)


def _common_pros_cons(report: ReportInput):
    dscr = report.dscr
    ltv = report.ltv
    score = report.smartscore_value or 0
    market_score = market_global_score(report)
    missing = report.missing

    pros: List[str] = []
    cons: List[str] = []

    if dscr is not None and dscr >= 1.2:
        pros.append(f"Couverture de dette satisfaisante (DSCR {format_fixed(dscr, 2)})")
    if ltv is not None and ltv <= 50:
        pros.append(f"Levier contenu (LTV {format_number(ltv)}%)")
    if market_score is not None and market_score >= 60:
        pros.append(f"Marche porteur (score {market_score}/100)")
    if score >= 65:
        pros.append(f"SmartScore solide ({format_number(score)}/100)")
    for label in strong_pillars(report)[:2]:
        pros.append(f"Pilier fort : {label}")

    if dscr is not None and dscr < 1:
        cons.append(f"DSCR insuffisant ({format_fixed(dscr, 2)})")
    if ltv is not None and ltv > 70:
        cons.append(f"LTV eleve ({format_number(ltv)}%)")
    if market_score is not None and market_score < 40:
        cons.append(f"Marche defavorable ({market_score}/100)")
    if missing:
        cons.append(f"{len(missing)} donnee(s) manquante(s)")
    for label in weak_pillars(report)[:2]:
        cons.append(f"Pilier faible : {label}")

    return pros, cons


def _conservative(report: ReportInput, pros, cons) -> DecisionScenario:
    dscr = report.dscr
    ltv = report.ltv
    score = report.smartscore_value or 0
    missing = report.missing

    scenario = DecisionScenario(
        key=ScenarioKey.CONSERVATIVE,
        label="Conservateur",
        decision="GO",
        confidence=75,
        pros=pros or ["Aucun point favorable majeur identifie"],
        cons=cons or ["Aucun point defavorable majeur"],
    )

    if (dscr is not None and dscr < 1) or len(missing) >= 3:
        scenario.decision = "NO GO"
        scenario.confidence = 85 if dscr is not None and dscr < 0.8 else 70
        scenario.targets.append("Restructurer le plan de financement")
        if dscr is not None and dscr < 1:
            scenario.targets.append("Amener le DSCR au-dessus de 1.0")
        if len(missing) >= 3:
            scenario.targets.append("Completer les donnees manquantes")
    elif missing or (ltv is not None and ltv > 60):
        scenario.decision = "GO sous conditions strictes"
        scenario.confidence = 55
        scenario.conditions.extend(missing[:5])
        if ltv is not None and ltv > 60:
            scenario.conditions.append("Reduire le LTV sous 60%")
        scenario.targets.append("Levee integrale des conditions avant engagement")
    elif score < 70:
        scenario.decision = "GO sous conditions"
        scenario.confidence = 60
        scenario.conditions.append("Suivi trimestriel renforce")
        scenario.conditions.extend(missing[:3])

    return scenario


def _balanced(report: ReportInput, pros, cons) -> DecisionScenario:
    dscr = report.dscr
    ltv = report.ltv
    missing = report.missing

    scenario = DecisionScenario(
        key=ScenarioKey.BALANCED,
        label="Equilibre",
        decision="GO sous conditions",
        confidence=65,
        pros=pros or ["Aucun point favorable majeur"],
        cons=cons or ["Aucun point defavorable majeur"],
    )

    if ltv is not None and ltv < 50 and not missing and (dscr is None or dscr >= 1.2):
        scenario.decision = "GO"
        scenario.confidence = 80
    elif dscr is not None and dscr < 1 and len(missing) >= 3:
        scenario.decision = "NO GO"
        scenario.confidence = 75
        scenario.targets.append("Revoir le plan de financement")
    else:
        scenario.conditions.extend(missing[:4])
        if ltv is not None and ltv > 70:
            scenario.conditions.append("Renforcer les garanties")
        if dscr is not None and dscr < 1.2:
            scenario.conditions.append("Suivi DSCR semestriel")

    return scenario


def _opportunistic(report: ReportInput, pros, cons) -> DecisionScenario:
    dscr = report.dscr
    ltv = report.ltv
    market_score = market_global_score(report)
    yield_pct = gross_yield(report)

    scenario = DecisionScenario(
        key=ScenarioKey.OPPORTUNISTIC,
        label="Opportuniste",
        decision="GO sous conditions",
        confidence=60,
        pros=pros or ["Aucun point favorable majeur"],
        cons=cons or ["Aucun point defavorable majeur"],
    )

    if ltv is not None and ltv < 50 and (market_score is None or market_score > 50):
        scenario.decision = "GO patrimonial"
        scenario.confidence = 75
        if dscr is not None and dscr < 1:
            scenario.conditions.append("Reserve de couverture temporaire du service de la dette")
    else:
        scenario.conditions.extend(report.missing[:3])
        if ltv is not None and ltv >= 50:
            scenario.conditions.append("Renforcer l'apport pour reduire le LTV")

    scenario.targets.append("Valorisation patrimoniale long terme")
    if yield_pct is not None and yield_pct >= 6:
        scenario.targets.append("Capitaliser sur le rendement locatif")

    return scenario


def build_decision_scenarios(report: ReportInput) -> List[DecisionScenario]:
    """
    Build the three committee stances from one shared pros/cons list.

    Each stance applies its own thresholds and fixed per-branch confidence. The
    conservative stance comes first; it is the dominant decision of the memo.
    """
    pros, cons = _common_pros_cons(report)
    return [
        _conservative(report, list(pros), list(cons)),
        _balanced(report, list(pros), list(cons)),
        _opportunistic(report, list(pros), list(cons)),
    ]
