"""Alert deriver - flat, severity-tagged alerts from a SmartScore result and operation KPIs"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from credit_committee.domain.numeric import finite_number, format_number
from credit_committee.domain.operation import MissingSeverity, OperationSummary
from credit_committee.domain.profiles import PillarKey
from credit_committee.domain.smartscore import SmartScoreResult, clean_missing


class AlertSeverity(str, Enum):
    INFO = "info"
    WARN = "warn"
    CRITICAL = "critical"


@dataclass
class OperationAlert:
    id: str
    severity: AlertSeverity
    title: str
    message: str
    pillar: Optional[PillarKey] = None


def compute_alerts(operation: OperationSummary, result: SmartScoreResult) -> List[OperationAlert]:
    """
    Derive alerts in a fixed emission order; ids are alert-1..n in that order.

    - every blocker                         -> critical
    - pillar with data, raw < 30 / < 50     -> critical / warn
    - LTV > 90, margin < 0, DSCR < 1        -> critical
    - DSTI > 45                             -> warn
    - blocker-severity missing item         -> warn
    """
    alerts: List[OperationAlert] = []

    def add(severity: AlertSeverity, title: str, message: str, pillar: Optional[PillarKey] = None) -> None:
        alerts.append(
            OperationAlert(id=f"alert-{len(alerts) + 1}", severity=severity, title=title, message=message, pillar=pillar)
        )

    for blocker in result.blockers:
        add(AlertSeverity.CRITICAL, "Donnée bloquante", blocker)

    for pillar in result.pillars:
        if not pillar.has_data:
            continue
        if pillar.raw_score < 30:
            add(AlertSeverity.CRITICAL, f"{pillar.label} — Score critique", ". ".join(pillar.reasons), pillar.key)
        elif pillar.raw_score < 50:
            add(AlertSeverity.WARN, f"{pillar.label} — À surveiller", ". ".join(pillar.reasons), pillar.key)

    k = operation.kpis
    if k is not None:
        ltv = finite_number(k.ltv)
        margin = finite_number(k.margin)
        dscr = finite_number(k.dscr)
        dsti = finite_number(k.dsti)

        if ltv and ltv > 90:
            add(AlertSeverity.CRITICAL, "LTV très élevé",
                f"LTV de {format_number(ltv)}% — supérieur au seuil de 90%", PillarKey.RATIOS)
        if margin is not None and margin < 0:
            add(AlertSeverity.CRITICAL, "Marge négative",
                f"Marge de {format_number(margin)}% — opération déficitaire", PillarKey.RATIOS)
        if dscr is not None and dscr < 1.0:
            add(AlertSeverity.CRITICAL, "DSCR < 1",
                f"DSCR de {format_number(dscr)} — incapacité de remboursement", PillarKey.RATIOS)
        if dsti is not None and dsti > 45:
            add(AlertSeverity.WARN, "Taux d'effort élevé",
                f"DSTI de {format_number(dsti)}% — au-delà du seuil HCSF de 35%", PillarKey.RATIOS)

    for item in clean_missing(operation):
        if item.severity == MissingSeverity.BLOCKER:
            add(AlertSeverity.WARN, "Donnée manquante", f"{item.label} — impact sur le score")

    return alerts
