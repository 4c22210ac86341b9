"""Committee narrative builder - executive summary, sections, decision line and conditions"""

from dataclasses import dataclass, field
from typing import List

from credit_committee.domain.numeric import format_fixed, format_number, round_half_up
from credit_committee.domain.report import ReportInput, gross_yield, strong_pillars, weak_pillars

MAX_DOCUMENT_CONDITIONS = 8
MAX_LISTED_MISSING = 5


@dataclass
class PresentationSection:
    title: str
    paragraphs: List[str] = field(default_factory=list)


@dataclass
class CommitteePresentation:
    executive_summary: str
    sections: List[PresentationSection]
    decision_line: str
    conditions: List[str] = field(default_factory=list)


def _executive_summary(report: ReportInput) -> str:
    parts = [f'Le dossier "{report.programme_name}" est presente en comite de credit pour analyse et decision.']
    if report.address:
        parts.append(f"Le bien est situe {report.address}.")
    score = report.smartscore_value
    if score is not None:
        parts.append(f"Le SmartScore s'etablit a {format_number(score)}/100 ({report.smartscore.verdict}).")
    if report.dscr is not None:
        parts.append(f"Le DSCR previsionnel est de {format_fixed(report.dscr, 2)}.")
    if report.ltv is not None:
        parts.append(f"Le ratio LTV se situe a {format_number(report.ltv)}%.")
    return " ".join(parts)


def _market_section(report: ReportInput) -> PresentationSection:
    paragraphs: List[str] = []
    study = report.market_study
    if study is not None:
        dvf = study.dvf
        insee = study.insee
        if dvf.price_m2_median is not None and dvf.transactions is not None:
            if dvf.transactions >= 50:
                liquidity = "un marche liquide"
            elif dvf.transactions >= 20:
                liquidity = "un volume correct"
            else:
                liquidity = "un marche etroit"
            paragraphs.append(
                f"L'analyse DVF fait ressortir un prix median de {round_half_up(dvf.price_m2_median)} EUR/m2 "
                f"sur {liquidity} ({format_number(dvf.transactions)} transactions)."
            )
        if dvf.evolution is not None:
            evolution = format_fixed(dvf.evolution, 1)
            if dvf.evolution > 5:
                paragraphs.append(f"La tendance est haussiere (+{evolution}%), confortant la valorisation.")
            elif dvf.evolution > 0:
                paragraphs.append(f"Les prix montrent une legere progression (+{evolution}%).")
            elif dvf.evolution > -5:
                paragraphs.append(f"Les prix sont en leger recul ({evolution}%).")
            else:
                paragraphs.append(
                    f"Les prix reculent significativement ({evolution}%), facteur de risque sur la sortie."
                )
        if insee.revenue_median is not None:
            if insee.revenue_median > 25000:
                paragraphs.append("Le bassin de population est solvable (revenu median eleve).")
            elif insee.revenue_median < 19000:
                paragraphs.append("Le revenu median modeste peut limiter la demande.")
        if insee.unemployment_rate is not None and insee.unemployment_rate > 12:
            paragraphs.append(
                f"Le taux de chomage local de {format_fixed(insee.unemployment_rate, 1)}% est preoccupant."
            )
        if study.commune:
            paragraphs.append(f"Commune : {study.commune}.")
    if not paragraphs:
        paragraphs.append("Les donnees de marche disponibles sont insuffisantes pour une analyse approfondie.")
    return PresentationSection("Contexte de marché", paragraphs)


def _financial_section(report: ReportInput) -> PresentationSection:
    paragraphs: List[str] = []
    kpis = report.kpis
    ltv = report.ltv
    dscr = report.dscr
    margin = report.margin
    yield_pct = gross_yield(report)

    if kpis.total_cost is not None and kpis.annual_rent is not None:
        paragraphs.append(f"L'operation represente un cout total de {round_half_up(kpis.total_cost / 1000)}k EUR.")
    if ltv is not None:
        if ltv <= 50:
            paragraphs.append(f"Le LTV de {format_number(ltv)}% traduit une structure prudente avec un levier contenu.")
        elif ltv <= 70:
            paragraphs.append(f"Le LTV de {format_number(ltv)}% reste dans les standards bancaires.")
        else:
            paragraphs.append(f"Le LTV de {format_number(ltv)}% est eleve et necessite des garanties renforcees.")
    if dscr is not None:
        if dscr >= 1.3:
            paragraphs.append(f"Le DSCR de {format_fixed(dscr, 2)} offre une couverture confortable.")
        elif dscr >= 1.0:
            paragraphs.append(f"Le DSCR de {format_fixed(dscr, 2)} est juste suffisant pour couvrir la dette.")
        else:
            paragraphs.append(
                f"Le DSCR de {format_fixed(dscr, 2)} ne couvre pas le service de la dette — risque de defaut."
            )
    if yield_pct is not None:
        if yield_pct >= 7:
            paragraphs.append(f"Le rendement brut implicite de {format_fixed(yield_pct, 1)}% est attractif.")
        elif yield_pct >= 4:
            paragraphs.append(f"Le rendement brut de {format_fixed(yield_pct, 1)}% est dans la norme.")
        else:
            paragraphs.append(f"Le rendement brut de {format_fixed(yield_pct, 1)}% est faible.")
    if margin is not None:
        if margin > 15:
            paragraphs.append(f"La marge brute de {format_number(margin)}% offre un coussin confortable.")
        elif margin > 5:
            paragraphs.append(f"La marge brute de {format_number(margin)}% laisse peu de place aux imprevus.")
        else:
            paragraphs.append(f"La marge de {format_number(margin)}% est tres serree — risque en cas d'aleas.")
    if not paragraphs:
        paragraphs.append("Donnees financieres insuffisantes pour une analyse complete.")
    return PresentationSection("Analyse financière", paragraphs)


def _risk_section(report: ReportInput, weak: List[str]) -> PresentationSection:
    paragraphs: List[str] = []
    missing = report.missing
    if weak:
        paragraphs.append(f"Les piliers faibles identifies sont : {', '.join(weak)}.")
    if missing:
        listed = f" : {', '.join(missing)}" if len(missing) <= MAX_LISTED_MISSING else ""
        paragraphs.append(f"{len(missing)} donnee(s) manquante(s) identifiee(s){listed}.")
    if report.dscr is not None and report.dscr < 1:
        paragraphs.append("Le deficit de couverture de la dette constitue un risque structurel majeur.")
    if report.ltv is not None and report.ltv > 80:
        paragraphs.append("L'exposition bancaire est tres elevee (LTV > 80%).")
    if not paragraphs:
        paragraphs.append("Aucun risque majeur identifie a ce stade.")
    return PresentationSection("Risques et points d'attention", paragraphs)


def _decision_line(report: ReportInput) -> str:
    dscr = report.dscr
    ltv = report.ltv
    score = report.smartscore_value
    missing_count = len(report.missing)

    if dscr is not None and dscr < 1:
        return "DECISION : NO GO en l'etat — Le DSCR est inferieur a 1, les revenus ne couvrent pas la dette."
    if missing_count >= 3 and ltv is not None and ltv > 70:
        return "DECISION : Reserve — Donnees manquantes et levier eleve."
    if missing_count > 0:
        return "DECISION : GO sous conditions — Levee des donnees manquantes requise."
    if score is not None and score >= 65:
        return f"DECISION : GO — SmartScore {format_number(score)}/100, fondamentaux reunis."
    if score is not None and score >= 40:
        return f"DECISION : GO sous conditions — SmartScore {format_number(score)}/100, suivi renforce recommande."
    return "DECISION : Reserve — Le dossier necessite des complements significatifs."


def build_committee_presentation(report: ReportInput) -> CommitteePresentation:
    """
    Assemble the committee memo text.

    The market, financial and risk sections always exist and fall back to a single
    placeholder paragraph when their inputs are absent. "Points forts" only appears
    when at least one pillar scores 70 or more.
    """
    weak = weak_pillars(report)
    strong = strong_pillars(report)

    sections = [_market_section(report), _financial_section(report), _risk_section(report, weak)]
    if strong:
        sections.append(PresentationSection("Points forts", [f"Les piliers solides du dossier sont : {', '.join(strong)}."]))

    conditions = [f"Fournir : {item}" for item in report.missing[:MAX_DOCUMENT_CONDITIONS]]
    if report.dscr is not None and 1.0 <= report.dscr < 1.2:
        conditions.append("Suivi trimestriel du DSCR")
    if report.ltv is not None and report.ltv > 70:
        conditions.append("Renforcer les garanties ou reduire le LTV")
    if weak:
        conditions.append(f"Documenter / renforcer les piliers faibles ({', '.join(weak)})")

    return CommitteePresentation(
        executive_summary=_executive_summary(report),
        sections=sections,
        decision_line=_decision_line(report),
        conditions=conditions,
    )
