"""Acceptance probability estimator - additive weighted-driver model, baseline 50"""

from dataclasses import dataclass, field
from typing import List, Optional

from credit_committee.domain.numeric import clamp, format_fixed, format_number, round_half_up
from credit_committee.domain.report import ReportInput, gross_yield, market_global_score

BASELINE = 50
MISSING_ITEM_PENALTY = 3
MAX_MISSING_PENALTY = 20


@dataclass
class AcceptanceDriver:
    label: str
    impact: int
    detail: Optional[str] = None


@dataclass
class AcceptanceProbability:
    score: int  # 0-100
    drivers: List[AcceptanceDriver] = field(default_factory=list)


def dscr_impact(dscr: float) -> int:
    if dscr >= 1.5:
        return 18
    if dscr >= 1.3:
        return 14
    if dscr >= 1.2:
        return 10
    if dscr >= 1.0:
        return 2
    if dscr >= 0.9:
        return -12
    return -25


def ltv_impact(ltv: float) -> int:
    if ltv <= 40:
        return 15
    if ltv <= 50:
        return 10
    if ltv <= 60:
        return 5
    if ltv <= 70:
        return -2
    if ltv <= 80:
        return -8
    return -18


def smartscore_impact(score: float) -> int:
    if score >= 75:
        return 12
    if score >= 60:
        return 7
    if score >= 45:
        return 0
    if score >= 30:
        return -6
    return -14


def market_impact(market_score: float) -> int:
    if market_score >= 70:
        return 8
    if market_score >= 50:
        return 3
    if market_score >= 30:
        return -3
    return -10


def missing_penalty(missing_count: int) -> int:
    return min(missing_count * MISSING_ITEM_PENALTY, MAX_MISSING_PENALTY)


def compute_acceptance_score(
    dscr: Optional[float],
    ltv: Optional[float],
    smartscore: Optional[float],
    market_score: Optional[float],
    missing_count: int,
) -> int:
    """Raw acceptance score, reused as-is by the stress tests with shocked DSCR/LTV."""
    score = BASELINE
    if dscr is not None:
        score += dscr_impact(dscr)
    if ltv is not None:
        score += ltv_impact(ltv)
    if smartscore is not None:
        score += smartscore_impact(smartscore)
    if market_score is not None:
        score += market_impact(market_score)
    if missing_count > 0:
        score -= missing_penalty(missing_count)
    return int(clamp(round_half_up(score), 0, 100))


_DSCR_DETAILS = {18: "couverture tres confortable", 14: "couverture solide", 10: "acceptable", 2: "juste suffisant"}
_LTV_DETAILS = {15: "structure tres prudente", 10: "levier contenu", 5: "standard", -2: "fourchette haute", -8: "eleve"}
_SMARTSCORE_DETAILS = {12: "excellent", 7: "bon", 0: "moyen"}
_MARKET_DETAILS = {8: "porteur", 3: "neutre", -3: "tendu", -10: "defavorable"}


def build_acceptance_probability(report: ReportInput) -> AcceptanceProbability:
    """
    Estimate the committee acceptance probability and explain it.

    Drivers use the same buckets as the score plus margin and yield signals (which
    only inform the explanation), sorted by descending absolute impact.
    """
    dscr = report.dscr
    ltv = report.ltv
    margin = report.margin
    score = report.smartscore_value
    market_score = market_global_score(report)
    yield_pct = gross_yield(report)
    missing_count = len(report.missing)

    drivers: List[AcceptanceDriver] = []

    if dscr is not None:
        impact = dscr_impact(dscr)
        detail = _DSCR_DETAILS.get(impact, "deficit de couverture")
        drivers.append(AcceptanceDriver("DSCR", impact, f"{format_fixed(dscr, 2)} — {detail}"))

    if ltv is not None:
        impact = ltv_impact(ltv)
        detail = _LTV_DETAILS.get(impact, "tres eleve")
        drivers.append(AcceptanceDriver("LTV", impact, f"{format_number(ltv)}% — {detail}"))

    if score is not None:
        impact = smartscore_impact(score)
        detail = _SMARTSCORE_DETAILS.get(impact, "faible")
        drivers.append(AcceptanceDriver("SmartScore", impact, f"{format_number(score)}/100 — {detail}"))

    if market_score is not None:
        impact = market_impact(market_score)
        drivers.append(AcceptanceDriver("Marche", impact, f"Score {market_score}/100 — {_MARKET_DETAILS[impact]}"))

    if margin is not None:
        if margin > 15:
            drivers.append(AcceptanceDriver("Marge brute", 5, f"{format_number(margin)}% — confortable"))
        elif margin < 5:
            drivers.append(AcceptanceDriver("Marge brute", -5, f"{format_number(margin)}% — serree"))

    if yield_pct is not None:
        if yield_pct >= 7:
            drivers.append(AcceptanceDriver("Rendement brut", 4, f"{format_fixed(yield_pct, 1)}% — attractif"))
        elif yield_pct < 4:
            drivers.append(AcceptanceDriver("Rendement brut", -4, f"{format_fixed(yield_pct, 1)}% — faible"))

    if missing_count > 0:
        drivers.append(
            AcceptanceDriver("Donnees manquantes", -missing_penalty(missing_count), f"{missing_count} element(s)")
        )

    drivers.sort(key=lambda d: abs(d.impact), reverse=True)

    return AcceptanceProbability(
        score=compute_acceptance_score(dscr, ltv, score, market_score, missing_count),
        drivers=drivers,
    )
