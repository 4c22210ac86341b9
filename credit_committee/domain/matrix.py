"""Risk/return matrix classifier"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from credit_committee.domain.numeric import clamp, format_fixed, format_number, guarded_number, round_half_up, round_to
from credit_committee.domain.report import ReportInput, market_global_score, weak_pillars, yield_from

MAX_COMMENTARY_SENTENCES = 5


class DominantRisk(str, Enum):
    DSCR_DEFICIT = "dscr_deficit"
    LTV_CRITICAL = "ltv_critical"
    LIQUIDITY_LOW = "liquidity_low"
    GUARANTEES_MISSING = "guarantees_missing"
    DATA_MISSING = "data_missing"
    NONE = "none"


class Quadrant(str, Enum):
    OPTIMAL = "Optimal — Rendement eleve / Risque faible"
    PRUDENT = "Prudent — Risque faible / Rendement modere"
    VIGILANCE = "Vigilance — Rendement eleve / Risque eleve"
    UNFAVORABLE = "Defavorable — Risque eleve / Rendement faible"
    INTERMEDIATE = "Zone intermediaire — Attention requise"


@dataclass
class RiskReturnMatrix:
    risk_score: int  # 0 = low risk
    return_score: int  # 0 = low return
    quadrant: Quadrant
    dominant_risk: DominantRisk
    dominant_risk_label: str
    commentary: str


def resolve_dominant_risk(report: ReportInput) -> Tuple[DominantRisk, str]:
    """
    Strict priority waterfall, first match wins:
        1. DSCR < 1
        2. LTV > 80
        3. fewer than 20 DVF transactions
        4. weak pillar whose label mentions guarantees or sureties
        5. more than 2 missing items
    """
    dscr = report.dscr
    ltv = report.ltv

    if dscr is not None and dscr < 1:
        return DominantRisk.DSCR_DEFICIT, f"Deficit de couverture de dette (DSCR {format_fixed(dscr, 2)})"

    if ltv is not None and ltv > 80:
        return DominantRisk.LTV_CRITICAL, f"Exposition bancaire critique (LTV {format_number(ltv)}%)"

    transactions = report.market_study.dvf.transactions if report.market_study else None
    if transactions is not None and transactions < 20:
        return DominantRisk.LIQUIDITY_LOW, f"Marche peu liquide ({format_number(transactions)} transactions DVF)"

    if any("garantie" in label.lower() or "surete" in label.lower() for label in weak_pillars(report)):
        return DominantRisk.GUARANTEES_MISSING, "Garanties insuffisantes ou absentes"

    if len(report.missing) > 2:
        return DominantRisk.DATA_MISSING, f"Donnees manquantes significatives ({len(report.missing)} elements)"

    return DominantRisk.NONE, "Aucun risque dominant identifie"


def _risk_score(report: ReportInput, market_score, stressed_yield) -> int:
    ltv = report.ltv
    dscr = report.dscr
    score = report.smartscore_value
    missing_count = len(report.missing)

    risk = 50
    if ltv is not None:
        if ltv > 80:
            risk += 20
        elif ltv > 70:
            risk += 10
        elif ltv > 60:
            risk += 3
        elif ltv <= 40:
            risk -= 15
        elif ltv <= 50:
            risk -= 10
        else:
            risk -= 3
    if dscr is not None:
        if dscr < 1:
            risk += 20
        elif dscr < 1.2:
            risk += 5
        elif dscr >= 1.5:
            risk -= 12
        else:
            risk -= 5
    if score is not None:
        if score < 30:
            risk += 10
        elif score >= 70:
            risk -= 10
    if market_score is not None and market_score < 30:
        risk += 8
    if missing_count > 3:
        risk += 8
    elif missing_count > 0:
        risk += 3
    if stressed_yield is not None and stressed_yield < 4:
        risk += 5
    return int(clamp(round_half_up(risk), 0, 100))


def _return_score(report: ReportInput, market_score, yield_pct) -> int:
    margin = report.margin
    dscr = report.dscr

    ret = 40
    if yield_pct is not None:
        if yield_pct >= 8:
            ret += 25
        elif yield_pct >= 6:
            ret += 18
        elif yield_pct >= 4:
            ret += 8
        else:
            ret -= 5
    if margin is not None:
        if margin >= 20:
            ret += 18
        elif margin >= 10:
            ret += 10
        elif margin >= 5:
            ret += 3
        else:
            ret -= 5
    if dscr is not None and dscr >= 1.5:
        ret += 5
    if market_score is not None:
        if market_score >= 70:
            ret += 8
        elif market_score < 30:
            ret -= 5
    return int(clamp(round_half_up(ret), 0, 100))


def _quadrant(risk: int, ret: int) -> Quadrant:
    if risk <= 40:
        return Quadrant.OPTIMAL if ret >= 60 else Quadrant.PRUDENT
    if risk > 60:
        return Quadrant.VIGILANCE if ret >= 60 else Quadrant.UNFAVORABLE
    return Quadrant.INTERMEDIATE


def build_risk_return_matrix(report: ReportInput) -> RiskReturnMatrix:
    """
    Place the dossier on the risk/return grid.

    The stressed yield (rents -10%) only feeds the risk score and the commentary.
    Commentary sentences come from independent generators in a fixed order; once
    five sentences exist the remaining generators are skipped.
    """
    ltv = report.ltv
    dscr = report.dscr
    margin = report.margin
    market_score = market_global_score(report)

    rent = guarded_number(report.kpis.annual_rent)
    cost = guarded_number(report.kpis.total_cost)
    yield_pct = yield_from(rent, cost)
    stressed_yield = yield_from(rent * 0.9 if rent is not None else None, cost)

    dominant_risk, dominant_risk_label = resolve_dominant_risk(report)
    risk = _risk_score(report, market_score, stressed_yield)
    ret = _return_score(report, market_score, yield_pct)

    parts: List[str] = []

    # Step 1: quadrant overview
    if risk <= 40 and ret >= 60:
        parts.append("Le dossier se positionne dans le cadran optimal avec un bon equilibre rendement/risque.")
    elif risk > 60 and ret < 60:
        parts.append(
            "Le profil risque/rendement est defavorable : le niveau de risque n'est pas compense "
            "par un rendement suffisant."
        )
    elif risk > 60:
        parts.append(
            "Le rendement est attractif mais le niveau de risque appelle a la vigilance "
            "et a des conditions renforcees."
        )
    else:
        parts.append(
            "Le profil risque/rendement se situe dans une zone intermediaire qui appelle a un examen attentif."
        )

    # Step 2: specific drivers
    if ltv is not None and ltv > 70:
        parts.append(f"Le LTV de {format_number(ltv)}% pese sur le score de risque.")
    if yield_pct is not None and yield_pct >= 7:
        parts.append(f"Le rendement brut de {format_fixed(yield_pct, 1)}% est un atout majeur.")
    if stressed_yield is not None and yield_pct is not None and stressed_yield < 4 <= yield_pct:
        parts.append(
            f"En stress loyers -10%, le rendement tombe a {format_fixed(stressed_yield, 1)}%, "
            "sous le seuil de confort."
        )
    if margin is not None and margin < 5:
        parts.append("La marge serree limite le potentiel de rendement.")

    # Step 3: unfavorable coupling
    if risk > 70 and ret < 50 and len(parts) < MAX_COMMENTARY_SENTENCES:
        parts.append(
            f"Le couple rendement/risque est defavorable : le risque eleve (score {risk}/100) n'est pas "
            f"compense par un rendement suffisant (score {ret}/100), rendant l'operation difficilement "
            "justifiable en l'etat."
        )

    # Step 4: rate shock on a thin coverage
    if dscr is not None and dscr < 1.2 and len(parts) < MAX_COMMENTARY_SENTENCES:
        stressed_dscr = round_to(dscr * 0.9, 2)
        if stressed_dscr < 1:
            parts.append(
                f"En stress taux +1% (DSCR estime a {format_fixed(stressed_dscr, 2)}), la couverture de dette "
                "passe sous 1 — le dossier ne resisterait pas a une hausse de taux."
            )
        else:
            parts.append(
                f"En stress taux +1% (DSCR estime a {format_fixed(stressed_dscr, 2)}), la couverture reste "
                "positive mais avec une marge tres reduite."
            )

    return RiskReturnMatrix(
        risk_score=risk,
        return_score=ret,
        quadrant=_quadrant(risk, ret),
        dominant_risk=dominant_risk,
        dominant_risk_label=dominant_risk_label,
        commentary=" ".join(parts[:MAX_COMMENTARY_SENTENCES]),
    )
