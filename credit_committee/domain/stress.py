"""Stress test engine - base case plus rent, asset-value and rate shocks"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from credit_committee.domain.acceptance import build_acceptance_probability
from credit_committee.domain.numeric import format_number, guarded_number, round_to
from credit_committee.domain.report import ReportInput, yield_from

logger = logging.getLogger(__name__)

MAX_KEY_FINDINGS = 3


class StressCase(str, Enum):
    BASE = "base"
    RENT_MINUS_10 = "rent_-10"
    RENT_MINUS_20 = "rent_-20"
    VALUE_MINUS_10 = "value_-10"
    RATE_PLUS_1 = "rate_+1"


@dataclass
class StressTestCase:
    key: StressCase
    label: str
    dscr: Optional[float]
    ltv: Optional[float]
    yield_pct: Optional[float]
    acceptance_score: Optional[int]
    notes: List[str] = field(default_factory=list)


@dataclass
class StressSummary:
    worst_case_key: StressCase
    worst_dscr: Optional[float]
    worst_acceptance: Optional[int]
    key_findings: List[str] = field(default_factory=list)


@dataclass
class StressTestPack:
    base: StressTestCase
    cases: List[StressTestCase]
    summary: StressSummary


def _notes(dscr, ltv, yield_pct, acceptance) -> List[str]:
    notes = []
    if dscr is not None and dscr < 1:
        notes.append("Déficit de couverture")
    if ltv is not None and ltv > 80:
        notes.append("LTV > 80%")
    if yield_pct is not None and yield_pct < 4:
        notes.append("Rendement faible")
    if acceptance is not None and acceptance < 30:
        notes.append("Acceptation très improbable")
    return notes


def _rounded(value: Optional[float]) -> Optional[float]:
    return round_to(value, 2) if value is not None else None


def _stressed_acceptance(report: ReportInput, dscr, ltv, annual_rent=None) -> int:
    """Acceptance on a copy of the report whose KPIs carry the shocked values.

    Absent shocked values keep the report's own KPI; smartscore, market study and
    missing list are never shocked.
    """
    overrides = {}
    if dscr is not None:
        overrides["dscr"] = dscr
    if ltv is not None:
        overrides["ltv"] = ltv
    if annual_rent is not None:
        overrides["annual_rent"] = annual_rent
    shocked = replace(report, kpis=replace(report.kpis, **overrides))
    return build_acceptance_probability(shocked).score


def _case(report, key, label, dscr, ltv, yield_pct, rent_for_acceptance=None) -> StressTestCase:
    acceptance = _stressed_acceptance(report, dscr, ltv, rent_for_acceptance)
    return StressTestCase(
        key=key,
        label=label,
        dscr=dscr,
        ltv=ltv,
        yield_pct=_rounded(yield_pct),
        acceptance_score=acceptance,
        notes=_notes(dscr, ltv, yield_pct, acceptance),
    )


def build_stress_tests(report: ReportInput) -> StressTestPack:
    """
    Run the stress pack.

    Cases, in order:
        base        unchanged KPIs
        rent_-10    DSCR x0.9, rents x0.9
        rent_-20    DSCR x0.8, rents x0.8
        value_-10   LTV / 0.9
        rate_+1     DSCR x0.9

    Shocked DSCR, LTV and yields are rounded to 2 decimals; notes use the unrounded
    yield. The worst case is the lowest acceptance, ties going to the earliest case.
    """
    base_dscr = report.dscr
    base_ltv = report.ltv
    rent = guarded_number(report.kpis.annual_rent)
    cost = guarded_number(report.kpis.total_cost)
    base_yield = yield_from(rent, cost)

    base = _case(report, StressCase.BASE, "Scénario de base", base_dscr, base_ltv, base_yield)

    rent10 = rent * 0.9 if rent is not None else None
    rent20 = rent * 0.8 if rent is not None else None
    cases = [
        _case(
            report, StressCase.RENT_MINUS_10, "Loyers -10%",
            _rounded(base_dscr * 0.9) if base_dscr is not None else None, base_ltv,
            yield_from(rent10, cost), rent_for_acceptance=rent10,
        ),
        _case(
            report, StressCase.RENT_MINUS_20, "Loyers -20%",
            _rounded(base_dscr * 0.8) if base_dscr is not None else None, base_ltv,
            yield_from(rent20, cost), rent_for_acceptance=rent20,
        ),
        _case(
            report, StressCase.VALUE_MINUS_10, "Valeur du bien -10%",
            base_dscr, _rounded(base_ltv / 0.9) if base_ltv is not None else None,
            base_yield,
        ),
        _case(
            report, StressCase.RATE_PLUS_1, "Taux d'intérêt +1%",
            _rounded(base_dscr * 0.9) if base_dscr is not None else None, base_ltv,
            base_yield,
        ),
    ]

    all_cases = [base] + cases

    worst = None
    for case in all_cases:
        if case.acceptance_score is None:
            continue
        if worst is None or case.acceptance_score < worst.acceptance_score:
            worst = case

    worst_dscr = None
    for case in all_cases:
        if case.dscr is not None and (worst_dscr is None or case.dscr < worst_dscr):
            worst_dscr = case.dscr

    findings: List[str] = []

    # Step 1: worst-case headline
    if worst is not None and worst.key != StressCase.BASE:
        findings.append(
            f'Le scenario le plus defavorable est "{worst.label}" avec une probabilite '
            f"d'acceptation de {worst.acceptance_score}%."
        )

    # Step 2: DSCR breaches, shocked cases only
    dscr_breaches = [c for c in cases if c.dscr is not None and c.dscr < 1]
    if dscr_breaches:
        if len(dscr_breaches) == len(cases):
            findings.append("Le DSCR passe sous 1 dans tous les scenarios de stress — resilience insuffisante.")
        else:
            labels = ", ".join(c.label for c in dscr_breaches)
            findings.append(f"Le DSCR passe sous 1 dans {len(dscr_breaches)} scenario(s) ({labels}).")
    elif base_dscr is not None and base_dscr >= 1:
        findings.append("Le DSCR reste au-dessus de 1 dans tous les scenarios — bonne resilience.")

    # Step 3: LTV breaches
    ltv_breaches = [c for c in cases if c.ltv is not None and c.ltv > 80]
    if ltv_breaches:
        labels = ", ".join(c.label for c in ltv_breaches)
        findings.append(f'Le LTV depasse 80% en scenario "{labels}" — exposition bancaire critique.')

    pack = StressTestPack(
        base=base,
        cases=cases,
        summary=StressSummary(
            worst_case_key=worst.key if worst is not None else StressCase.BASE,
            worst_dscr=worst_dscr,
            worst_acceptance=worst.acceptance_score if worst is not None else None,
            key_findings=findings[:MAX_KEY_FINDINGS],
        ),
    )
    logger.debug(
        "Stress pack built",
        extra={
            "worst_case": pack.summary.worst_case_key.value,
            "worst_dscr": format_number(worst_dscr) if worst_dscr is not None else None,
        },
    )
    return pack
