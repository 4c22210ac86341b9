"""Intake pipeline - completeness, LTV, risk level, suggested conditions and decision draft"""

import itertools
import logging
import threading
from typing import List, Optional, Sequence, Set

from credit_committee.domain.catalog import (
    PLANNING_DOC_ID,
    PRE_COMMERCIALISATION_DOC_ID,
    get_required_documents,
)
from credit_committee.domain.models import (
    CompletenessResult,
    Condition,
    ConditionSource,
    DecisionDraft,
    Dossier,
    DossierEvaluation,
    DocumentStatus,
    ProjectType,
    RequiredDocument,
    RiskLevel,
    Verdict,
)
from credit_committee.domain.numeric import finite_number, format_fixed, guarded_number, round_half_up, round_to

logger = logging.getLogger(__name__)

# Risk bands are inclusive on the lower side: LTV == 0.6 is still "low band", 0.8 still "mid band"
LOW_LTV_BAND = 0.6
MID_LTV_BAND = 0.8
MAX_INDIVIDUAL_DOC_CONDITIONS = 5


class ConditionSequence:
    """
    Thread-safe generator of auto-condition identifiers.

    Ids are "cond-auto-1", "cond-auto-2", ... and keep increasing across calls
    until reset() is invoked.
    """

    def __init__(self, start: int = 1):
        self._start = start
        self._lock = threading.Lock()
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        with self._lock:
            return f"cond-auto-{next(self._counter)}"

    def reset(self) -> None:
        with self._lock:
            self._counter = itertools.count(self._start)


def _ids_with_status(dossier: Dossier, status: DocumentStatus) -> Set[str]:
    return {doc.id for doc in dossier.documents if doc.status == status}


def compute_completeness(dossier: Dossier, required_docs: Sequence[RequiredDocument]) -> CompletenessResult:
    """
    Measure how much of the required-document catalog the dossier covers.

    - Documents marked not-applicable leave both the total and the missing list
    - A catalog id with no matching document counts as required and missing
    - Percentage is 0 when nothing is applicable
    """
    provided_ids = _ids_with_status(dossier, DocumentStatus.SUPPLIED)
    not_applicable_ids = _ids_with_status(dossier, DocumentStatus.NOT_APPLICABLE)

    applicable = [doc for doc in required_docs if doc.id not in not_applicable_ids]
    missing = [doc for doc in applicable if doc.id not in provided_ids]

    total = len(applicable)
    provided = total - len(missing)
    percentage = round_half_up(provided / total * 100) if total > 0 else 0

    return CompletenessResult(
        total=total,
        provided=provided,
        percentage=percentage,
        missing=[doc.label for doc in missing],
    )


def compute_ltv(requested_amount: float, collateral_value: float) -> Optional[float]:
    """Loan-to-value ratio rounded to 4 decimals, None when either side is not a positive finite amount."""
    amount = guarded_number(requested_amount)
    value = guarded_number(collateral_value)
    if amount is None or value is None:
        return None
    return round_to(amount / value, 4)


def compute_ltv_from_dossier(dossier: Dossier) -> Optional[float]:
    """
    LTV against the sum of guarantees, falling back to the project value.

    Non-finite guarantee amounts count as zero; when the guarantee sum is not
    positive the project value becomes the denominator.
    """
    total_guarantees = 0.0
    for guarantee in dossier.guarantees:
        amount = finite_number(guarantee.amount)
        total_guarantees += amount if amount is not None else 0.0

    collateral = total_guarantees if total_guarantees > 0 else dossier.project_value
    return compute_ltv(dossier.requested_amount, collateral)


def compute_risk_level(dossier: Dossier, ltv: Optional[float]) -> RiskLevel:
    """
    Qualitative risk from LTV and guarantee presence.

    - LTV unknown or amount <= 0  -> unknown
    - LTV <= 0.6                  -> low with guarantees, medium without
    - 0.6 < LTV <= 0.8            -> medium with guarantees, high without
    - LTV > 0.8                   -> high
    """
    amount = finite_number(dossier.requested_amount)
    if ltv is None or amount is None or amount <= 0:
        return RiskLevel.UNKNOWN

    has_guarantees = len(dossier.guarantees) > 0

    if ltv <= LOW_LTV_BAND:
        return RiskLevel.LOW if has_guarantees else RiskLevel.MEDIUM
    if ltv <= MID_LTV_BAND:
        return RiskLevel.MEDIUM if has_guarantees else RiskLevel.HIGH
    return RiskLevel.HIGH


def _is_supplied(dossier: Dossier, doc_id: str) -> bool:
    return any(doc.id == doc_id and doc.status == DocumentStatus.SUPPLIED for doc in dossier.documents)


def suggest_conditions(
    dossier: Dossier,
    required_docs: Sequence[RequiredDocument],
    ltv: Optional[float],
    risk_level: RiskLevel,
    sequence: ConditionSequence,
) -> List[Condition]:
    """
    Generate committee conditions from the current dossier state.

    Every rule is evaluated independently; ids are drawn from the injected sequence
    in emission order.
    """
    conditions: List[Condition] = []

    def emit(text: str) -> None:
        conditions.append(Condition(id=sequence.next_id(), text=text, source=ConditionSource.AUTO, met=False))

    # Missing documents: one condition each, or a single grouped one above the cap
    provided_ids = _ids_with_status(dossier, DocumentStatus.SUPPLIED)
    not_applicable_ids = _ids_with_status(dossier, DocumentStatus.NOT_APPLICABLE)
    missing_docs = [doc for doc in required_docs if doc.id not in provided_ids and doc.id not in not_applicable_ids]

    if 0 < len(missing_docs) <= MAX_INDIVIDUAL_DOC_CONDITIONS:
        for doc in missing_docs:
            emit(f"Fournir le document : {doc.label}")
    elif len(missing_docs) > MAX_INDIVIDUAL_DOC_CONDITIONS:
        emit(f"Fournir les {len(missing_docs)} documents manquants avant instruction")

    if not dossier.guarantees:
        emit("Constitution d'au moins une garantie (hypothèque, caution, nantissement…)")

    if ltv is not None and ltv > MID_LTV_BAND:
        emit(
            f"LTV de {format_fixed(ltv * 100, 1)}% — obtenir un apport supplémentaire ou une garantie "
            f"complémentaire pour ramener le LTV sous 80%"
        )

    if risk_level == RiskLevel.HIGH:
        emit("Niveau de risque élevé — exiger une caution personnelle du dirigeant ou un nantissement complémentaire")

    if dossier.project_type == ProjectType.DEVELOPER and not _is_supplied(dossier, PRE_COMMERCIALISATION_DOC_ID):
        emit("Atteindre un taux de pré-commercialisation ≥ 40% avant premier déblocage")

    if dossier.project_type == ProjectType.TRADER and not _is_supplied(dossier, PLANNING_DOC_ID):
        emit("Fournir un planning prévisionnel détaillé (acquisition → travaux → revente)")

    return conditions


def _risk_sentence(risk_level: RiskLevel) -> str:
    return f"Niveau de risque : {risk_level.value}."


def build_decision_draft(
    dossier: Dossier,
    completeness: CompletenessResult,
    ltv: Optional[float],
    risk_level: RiskLevel,
    suggested_conditions: List[Condition],
) -> DecisionDraft:
    """
    Build the automatic decision proposal.

    Verdict priority (first match wins):
    - completeness < 30%                                  -> NO_GO
    - LTV known and > 1.0                                 -> NO_GO
    - high risk, no guarantee and completeness < 50%      -> NO_GO
    - 100% complete, no unmet condition, low/medium risk
      and known LTV <= 0.8                                -> GO
    - anything else                                       -> GO_SOUS_CONDITIONS
    """
    pct = completeness.percentage
    unmet = [c for c in suggested_conditions if not c.met]

    def draft(verdict: Verdict, confidence: float, motivations: List[str]) -> DecisionDraft:
        motivations.append(_risk_sentence(risk_level))
        return DecisionDraft(
            verdict=verdict,
            confidence=confidence,
            motivation=" ".join(motivations),
            suggested_conditions=suggested_conditions,
        )

    # NO GO checks
    if pct < 30:
        return draft(
            Verdict.NO_GO,
            0.9,
            [f"Complétude insuffisante ({pct}%). Le dossier est trop incomplet pour être instruit."],
        )

    if ltv is not None and ltv > 1.0:
        return draft(
            Verdict.NO_GO,
            0.95,
            [
                f"LTV de {format_fixed(ltv * 100, 1)}% : le montant demandé dépasse la valeur des garanties/projet. "
                "Financement non envisageable en l'état."
            ],
        )

    if risk_level == RiskLevel.HIGH and not dossier.guarantees and pct < 50:
        return draft(
            Verdict.NO_GO,
            0.85,
            ["Risque élevé combiné à l'absence totale de garanties et un dossier incomplet. Financement refusé."],
        )

    # GO check
    if (
        pct == 100
        and not unmet
        and risk_level in (RiskLevel.LOW, RiskLevel.MEDIUM)
        and ltv is not None
        and ltv <= MID_LTV_BAND
    ):
        motivations = ["Dossier complet."]
        if risk_level == RiskLevel.LOW:
            motivations.append("Risque faible, garanties satisfaisantes.")
            confidence = 0.95
        else:
            motivations.append("Risque modéré mais acceptable au vu des garanties.")
            confidence = 0.8
        motivations.append(f"LTV de {format_fixed(ltv * 100, 1)}%.")
        return draft(Verdict.GO, confidence, motivations)

    # GO sous conditions (default)
    motivations: List[str] = []
    if pct < 100:
        motivations.append(f"Complétude à {pct}% — {len(completeness.missing)} document(s) manquant(s).")
    if ltv is not None:
        motivations.append(f"LTV de {format_fixed(ltv * 100, 1)}%.")

    if risk_level == RiskLevel.HIGH:
        motivations.append("Niveau de risque élevé — conditions renforcées nécessaires.")
    elif risk_level == RiskLevel.MEDIUM:
        motivations.append("Risque modéré.")
    elif risk_level == RiskLevel.UNKNOWN:
        motivations.append("Données insuffisantes pour évaluer le risque précisément.")

    if suggested_conditions:
        motivations.append(f"{len(suggested_conditions)} condition(s) suspensive(s) à satisfaire.")

    if pct >= 80 and risk_level in (RiskLevel.LOW, RiskLevel.MEDIUM):
        confidence = 0.75
    elif pct >= 50:
        confidence = 0.55
    else:
        confidence = 0.4

    return draft(Verdict.CONDITIONAL_GO, confidence, motivations)


def evaluate_dossier(
    dossier: Dossier,
    sequence: ConditionSequence,
    required_docs: Optional[Sequence[RequiredDocument]] = None,
) -> DossierEvaluation:
    """
    Main entry point: run the intake pipeline end-to-end on the current dossier state.

    Nothing is cached; amounts, documents and guarantees are read fresh on every call.
    """
    catalog = list(required_docs) if required_docs is not None else get_required_documents(dossier.project_type)

    completeness = compute_completeness(dossier, catalog)
    ltv = compute_ltv_from_dossier(dossier)
    risk_level = compute_risk_level(dossier, ltv)
    conditions = suggest_conditions(dossier, catalog, ltv, risk_level, sequence)
    draft = build_decision_draft(dossier, completeness, ltv, risk_level, conditions)

    logger.debug(
        "Dossier evaluated",
        extra={
            "dossier_id": dossier.id,
            "completeness_pct": completeness.percentage,
            "ltv": ltv,
            "risk_level": risk_level.value,
            "verdict": draft.verdict.value,
        },
    )

    return DossierEvaluation(
        dossier_id=dossier.id,
        completeness=completeness,
        ltv=ltv,
        risk_level=risk_level,
        conditions=conditions,
        draft=draft,
    )
