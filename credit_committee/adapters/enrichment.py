"""Enrichment adapter - normalizes raw operation payloads into an OperationSummary

The enrichment backend forwards the raw answers of its sub-services (geo risks,
DVF transactions, market study) without normalizing them, so the same logical
block reaches us in several shapes. Each block gets a shape-detecting parser that
returns the canonical dataclass, or None when nothing usable was found. Scoring
code only ever sees the canonical records.
"""

import logging
import re
from dataclasses import fields, replace
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional

from credit_committee.domain.models import Document, DocumentStatus, Guarantee
from credit_committee.domain.numeric import finite_number
from credit_committee.domain.operation import (
    BorrowerProfile,
    Commune,
    DocumentsSnapshot,
    DvfComparable,
    DvfData,
    DvfStats,
    GeoRiskSummary,
    GuaranteesSnapshot,
    MissingItem,
    MissingSeverity,
    OperationBudget,
    OperationCalendar,
    OperationFinancing,
    OperationKpis,
    OperationMarket,
    OperationMeta,
    OperationProject,
    OperationRevenues,
    OperationRisks,
    OperationSummary,
    PropertyCondition,
    RevenueScenarios,
    RiskItem,
    ScenarioValues,
)

logger = logging.getLogger(__name__)

MAX_TRANSACTION_COMPARABLES = 10
DEFAULT_GEO_SCORE = 50

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# ════════════════════════════════════════════════════════════════════
# Helpers
# ════════════════════════════════════════════════════════════════════


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _get(raw: Dict[str, Any], name: str) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    value = raw.get(name)
    if value is None:
        value = raw.get(_camel(name))
    return value


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    """First non-None value among keys (a ?? b ?? c)."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _number(raw: Dict[str, Any], *keys: str) -> Optional[float]:
    return finite_number(_first(raw, *keys))


def _coalesce(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def _dict(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) and value else None


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


_FLOAT_TYPES = (Optional[float], float)
_STR_TYPES = (Optional[str], str)


def _record(cls, raw: Any):
    """
    Build a flat dataclass from a dict, accepting snake_case or camelCase keys.

    Numeric fields go through finite_number, text fields are stripped; fields of
    any other type are left to the caller.
    """
    raw = _dict(raw)
    if raw is None:
        return None
    values = {}
    for f in fields(cls):
        value = _get(raw, f.name)
        if value is None:
            continue
        if f.type in _FLOAT_TYPES:
            value = finite_number(value)
        elif f.type in _STR_TYPES:
            value = _text(value)
        else:
            continue
        if value is not None:
            values[f.name] = value
    return cls(**values)


# ════════════════════════════════════════════════════════════════════
# Risks
# ════════════════════════════════════════════════════════════════════


def _risk_items(raw: Any, category: str) -> List[RiskItem]:
    items = []
    for entry in _list(raw):
        if isinstance(entry, str):
            items.append(RiskItem(category=category, label=entry))
        elif isinstance(entry, dict):
            items.append(
                RiskItem(
                    category=_text(_first(entry, "category", "categorie", "type")) or category,
                    label=_text(_first(entry, "label", "libelle", "name", "type")) or "",
                    level=_text(_first(entry, "level", "niveau")) or "inconnu",
                    status=_text(entry.get("status")) or "unknown",
                )
            )
    return items


def _mentions(entry: Any, needle: str) -> bool:
    if isinstance(entry, str):
        return needle in entry.lower()
    if isinstance(entry, dict):
        return needle in str(_first(entry, "label", "libelle", "type") or "").lower()
    return False


def _geo_label(score: float) -> str:
    if score >= 70:
        return "Faible"
    if score >= 40:
        return "Modéré"
    return "Élevé"


def normalize_risks(raw: Any) -> Optional[OperationRisks]:
    """
    Parse a risk payload.

    Shapes, detected in order:
        normalized  {"geo": {"score": <number>, ...}}
        legacy      {"geo": [<risk item>, ...], "urbanism": [...], ...}
        wrapped     {"data": {<flat>}}
        flat        {"score" | "score_global" | "riskScore", "risks" | "risques_naturels", ...}

    Flat payloads without a score default to 50. Flood and seismic flags come from
    risk labels mentioning "inondation" / "sism".
    """
    r = _dict(raw)
    if r is None:
        return None

    extra = dict(
        urbanism=_risk_items(_first(r, "urbanism", "urbanisme"), "urbanisme"),
        execution=_risk_items(_first(r, "execution"), "execution"),
        environmental=_risk_items(_first(r, "environmental", "environnement"), "environnement"),
        sources=[str(s) for s in _list(r.get("sources"))],
        global_level=_text(_first(r, "global_level", "globalLevel")),
    )

    geo = r.get("geo")
    if isinstance(geo, dict) and isinstance(geo.get("score"), (int, float)) and not isinstance(geo.get("score"), bool):
        geo_score = finite_number(geo["score"])
        if geo_score is None:
            # NaN / Infinity: the geo analysis is unusable, not perfect
            return OperationRisks(score=_number(r, "score"), **extra)
        summary = GeoRiskSummary(
            score=geo_score,
            risk_count=int(_number(geo, "risk_count", "riskCount", "nbRisques") or 0),
            has_flood=bool(_first(geo, "has_flood", "hasFlood", "hasInondation")),
            has_seismic=bool(_first(geo, "has_seismic", "hasSeismic", "hasSismique")),
            label=_text(geo.get("label")),
        )
        return OperationRisks(geo=summary, score=_number(r, "score"), **extra)

    if isinstance(geo, list):
        return OperationRisks(geo=_risk_items(geo, "geo"), score=_number(r, "score"), **extra)

    data = _dict(r.get("data")) or r
    score = _number(data, "score", "score_global", "riskScore")
    if score is None:
        score = DEFAULT_GEO_SCORE
    all_risks = _list(_first(data, "risks", "risques_naturels")) + _list(data.get("risques_techno"))
    risk_count = _number(data, "nbRisques", "nb_risques")

    summary = GeoRiskSummary(
        score=score,
        risk_count=int(risk_count) if risk_count is not None else len(all_risks),
        has_flood=any(_mentions(entry, "inondation") for entry in all_risks),
        has_seismic=any(_mentions(entry, "sism") for entry in all_risks),
        label=_geo_label(score),
    )
    return OperationRisks(geo=summary, score=score, **extra)


# ════════════════════════════════════════════════════════════════════
# DVF
# ════════════════════════════════════════════════════════════════════


def _comparables(raw: Iterable[Any]) -> List[DvfComparable]:
    comparables = []
    for t in raw:
        if not isinstance(t, dict):
            continue
        comparables.append(
            DvfComparable(
                date=_text(_first(t, "date", "date_mutation")),
                price=_number(t, "price", "valeur_fonciere"),
                surface=_number(t, "surface", "surface_reelle_bati", "surface_m2"),
                price_per_sqm=_number(t, "price_per_sqm", "pricePerSqm", "prix_m2", "price_m2"),
            )
        )
    return comparables


def _flat_stats(s: Dict[str, Any]) -> DvfStats:
    return DvfStats(
        transactions_count=_number(s, "transactions_count", "nb_transactions"),
        price_median_eur_m2=_number(s, "price_median_eur_m2", "prix_m2_median", "median_price"),
        price_mean_eur_m2=_number(s, "price_mean_eur_m2", "prix_m2_moyen", "mean_price"),
        price_q1_eur_m2=_number(s, "price_q1_eur_m2", "prix_m2_q1", "prix_m2_min", "q1"),
        price_q3_eur_m2=_number(s, "price_q3_eur_m2", "prix_m2_q3", "prix_m2_max", "q3"),
        evolution_pct=_number(s, "evolution_pct", "evolution_prix_pct"),
    )


def normalize_dvf(raw: Any) -> Optional[DvfData]:
    """
    Parse one DVF source.

    Shapes, detected in order:
        A  {"stats": {...}, "comparables": [...]}
        B  {"dvf": <any shape>}
        C  {"transactions" | "mutations": [...]} or a root "median_price"
        D  flat stats at the root (raw market-study blob)
    """
    r = _dict(raw)
    if r is None:
        return None

    stats = _dict(r.get("stats"))
    if stats is not None:
        parsed = _flat_stats(stats)
        if parsed.transactions_count is None:
            parsed.transactions_count = 0
        return DvfData(stats=parsed, comparables=_comparables(_list(r.get("comparables"))))

    if _dict(r.get("dvf")) is not None:
        return normalize_dvf(r["dvf"])

    transactions = _list(_first(r, "transactions", "mutations"))
    if transactions or r.get("median_price"):
        parsed = _flat_stats(r)
        parsed.evolution_pct = None
        count = _number(r, "transactions_count", "nb_transactions", "count")
        parsed.transactions_count = count if count is not None else len(transactions)
        if parsed.price_median_eur_m2 is None:
            parsed.price_median_eur_m2 = _number(r, "medianPriceM2")
        if parsed.price_mean_eur_m2 is None:
            parsed.price_mean_eur_m2 = _number(r, "meanPriceM2")
        source = r.get("comparables")
        if source is None:
            source = transactions[:MAX_TRANSACTION_COMPARABLES]
        return DvfData(stats=parsed, comparables=_comparables(_list(source)))

    if any(r.get(k) for k in ("transactions_count", "nb_transactions", "price_median_eur_m2", "prix_m2_median")):
        return DvfData(stats=_flat_stats(r), comparables=_comparables(_list(r.get("comparables"))))

    return None


def _fill_gaps(merged: DvfData, source: DvfData) -> DvfData:
    stats = merged.stats
    updates = {}
    for f in fields(DvfStats):
        current = getattr(stats, f.name)
        absent = current is None or (f.name == "transactions_count" and current == 0)
        if absent and getattr(source.stats, f.name) is not None:
            updates[f.name] = getattr(source.stats, f.name)
    comparables = merged.comparables if merged.comparables else list(source.comparables)
    return DvfData(stats=replace(stats, **updates), comparables=comparables)


def merge_dvf_sources(*sources: Optional[DvfData]) -> Optional[DvfData]:
    """
    Ordered merge: for each stat the first non-absent value wins (a zero
    transaction count counts as absent); comparables come from the first source
    with a non-empty list.
    """
    valid = [s for s in sources if s is not None]
    if not valid:
        return None
    return reduce(_fill_gaps, valid[1:], valid[0])


# ════════════════════════════════════════════════════════════════════
# Market
# ════════════════════════════════════════════════════════════════════


_MARKET_KNOWN_KEYS = {f.name for f in fields(OperationMarket)} | {_camel(f.name) for f in fields(OperationMarket)}


def _extras(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in _MARKET_KNOWN_KEYS and k not in ("dvf", "data")}


def normalize_market(raw: Any) -> Optional[OperationMarket]:
    """
    Parse a market payload (optionally wrapped in "data").

    Shapes:
        commune block   {"commune": {"nom": ...}, "dvf": {...}, "indices": {...}, ...}
        demographics    {"demographics" | "insee": {"nom_commune": ...}} or the same keys flat
        flat            price_per_sqm / demand_index / comps_count at the root

    Blocks the scorers do not read (transport, schools, services...) are kept in
    `extras` as they came.
    """
    r = _dict(raw)
    if r is None:
        return None
    data = _dict(r.get("data")) or r
    base = _record(OperationMarket, data)

    commune_block = _dict(data.get("commune"))
    if commune_block is not None and _first(commune_block, "nom", "commune", "name"):
        dvf_block = _dict(data.get("dvf")) or {}
        indices = _dict(_first(data, "indices", "scores")) or {}
        transactions = _dict(data.get("transactions")) or {}

        sources = [str(s) for s in _list(data.get("sources"))]
        if not sources:
            if dvf_block:
                sources.append("DVF")
            if commune_block.get("population"):
                sources.append("INSEE")
            if data.get("transport"):
                sources.append("Transport")
            if data.get("ecoles"):
                sources.append("Écoles")
            if data.get("finess"):
                sources.append("FINESS")
            if _first(data, "osmServices", "osm_services"):
                sources.append("OSM")

        return replace(
            base,
            commune=Commune(
                name=str(_first(commune_block, "nom", "commune", "name")),
                population=_number(commune_block, "population"),
                density=_number(commune_block, "densite_hab_km2", "densiteHabKm2", "density"),
                department=_text(_first(commune_block, "departement", "nom_departement", "department")),
                region=_text(_first(commune_block, "region", "nom_region")),
                code=_text(_first(commune_block, "code", "code_commune", "codeCommune")),
            ),
            price_per_sqm=_coalesce(
                base.price_per_sqm, _number(dvf_block, "price_median_eur_m2", "prix_m2_median", "medianPriceM2")
            ),
            demand_index=_coalesce(base.demand_index, _number(indices, "demand_index", "demand", "demandIndex")),
            comps_count=_coalesce(
                base.comps_count,
                _number(dvf_block, "transactions_count", "nb_transactions"),
                _number(transactions, "count"),
            ),
            evolution_pct=_coalesce(base.evolution_pct, _number(dvf_block, "evolution_pct", "evolution_prix_pct")),
            sources=sources,
            extras=_extras(data),
        )

    demo = _dict(_first(data, "demographics", "insee")) or data
    commune_name = _text(_first(demo, "commune_name", "nom_commune", "nom", "libelle"))
    if commune_name:
        return replace(
            base,
            commune=Commune(
                name=commune_name,
                population=_number(demo, "population", "pop"),
                density=_number(demo, "densite", "densiteHabKm2", "density"),
                department=_text(_first(demo, "departement", "dep_name", "nom_departement")),
                region=_text(_first(demo, "region", "reg_name", "nom_region")),
            ),
            revenue_median=_coalesce(base.revenue_median, _number(demo, "revenu_median", "median_income")),
            extras=_extras(data),
        )

    if base.price_per_sqm or base.demand_index or base.comps_count:
        return replace(base, extras=_extras(data))

    return None


# ════════════════════════════════════════════════════════════════════
# Operation
# ════════════════════════════════════════════════════════════════════


def _profile(value: Any):
    if value is None:
        return BorrowerProfile.INDIVIDUAL
    try:
        return BorrowerProfile(value)
    except ValueError:
        return str(value)


def _meta(payload: Dict[str, Any], original: Optional[OperationSummary]) -> OperationMeta:
    raw = _dict(payload.get("meta"))
    if raw is None and original is not None:
        meta = original.meta
        if payload.get("profile") is not None:
            meta = replace(meta, profile=_profile(payload["profile"]))
        return meta
    raw = raw or {}
    return OperationMeta(
        profile=_profile(_first(raw, "profile") or payload.get("profile")),
        created_at=_text(_get(raw, "created_at")),
        updated_at=_text(_get(raw, "updated_at")),
        source=_text(raw.get("source")) or "manual",
    )


def _missing(raw: Any) -> List[MissingItem]:
    items = []
    for entry in _list(raw):
        if not isinstance(entry, dict) or not entry.get("key"):
            continue
        try:
            severity = MissingSeverity(entry.get("severity"))
        except ValueError:
            severity = MissingSeverity.WARN
        key = ".".join(_snake(part) for part in str(entry["key"]).split("."))
        items.append(MissingItem(key=key, label=_text(entry.get("label")) or key, severity=severity))
    return items


def _revenues(raw: Any) -> Optional[OperationRevenues]:
    revenues = _record(OperationRevenues, raw)
    if revenues is None:
        return None
    scenarios = _dict(raw.get("scenarios"))
    if scenarios is not None:
        revenues.scenarios = RevenueScenarios(
            base=_record(ScenarioValues, scenarios.get("base")),
            stress=_record(ScenarioValues, scenarios.get("stress")),
            upside=_record(ScenarioValues, scenarios.get("upside")),
        )
    return revenues


def _documents(raw: Any) -> Optional[DocumentsSnapshot]:
    raw = _dict(raw)
    if raw is None:
        return None
    items = []
    for entry in _list(raw.get("items")):
        if not isinstance(entry, dict) or entry.get("id") is None:
            continue
        try:
            status = DocumentStatus(entry.get("status"))
        except ValueError:
            status = DocumentStatus.PENDING
        items.append(
            Document(
                id=str(entry["id"]),
                label=_text(entry.get("label")) or str(entry["id"]),
                category=_text(entry.get("category")) or "",
                status=status,
            )
        )
    return DocumentsSnapshot(completeness=_number(raw, "completeness", "completude"), items=items)


def _guarantees(raw: Any) -> Optional[GuaranteesSnapshot]:
    raw = _dict(raw)
    if raw is None:
        return None
    items = []
    for entry in _list(raw.get("items")):
        if not isinstance(entry, dict):
            continue
        items.append(
            Guarantee(
                id=str(entry.get("id", len(items) + 1)),
                type=_text(entry.get("type")) or "",
                label=_text(entry.get("label")) or "",
                amount=finite_number(entry.get("amount")) or 0.0,
            )
        )
    coverage = _number(raw, "total_coverage", "totalCoverage", "couvertureTotale")
    return GuaranteesSnapshot(items=items, total_coverage=coverage)


# payload key -> OperationSummary field, where they differ
_SECTION_FIELDS = {"property": "property_condition"}

_SECTION_PARSERS = {
    "project": lambda raw: _record(OperationProject, raw),
    "budget": lambda raw: _record(OperationBudget, raw),
    "financing": lambda raw: _record(OperationFinancing, raw),
    "revenues": _revenues,
    "property": lambda raw: _record(PropertyCondition, raw),
    "calendar": lambda raw: _record(OperationCalendar, raw),
    "kpis": lambda raw: _record(OperationKpis, raw),
    "documents": _documents,
    "guarantees": _guarantees,
}


def normalize_operation(payload: Dict[str, Any], original: Optional[OperationSummary] = None) -> OperationSummary:
    """
    Normalize an enriched operation payload, overlaid on an optional original.

    Sections present in the payload replace the original's; absent ones are kept.
    DVF is read from the payload's "dvf", "market.dvf" and "market_study.dvf" blocks
    and merged in that order.
    """
    payload = payload or {}

    sections = {}
    for key, parse in _SECTION_PARSERS.items():
        name = _SECTION_FIELDS.get(key, key)
        parsed = parse(payload.get(key))
        if parsed is None and original is not None:
            parsed = getattr(original, name)
        sections[name] = parsed

    market_raw = payload.get("market")
    study_raw = _first(payload, "market_study", "marketStudy")

    risks = normalize_risks(payload.get("risks")) or normalize_risks(_first(payload, "risks_refresh", "risksRefresh"))
    dvf = merge_dvf_sources(
        normalize_dvf(payload.get("dvf")),
        normalize_dvf(market_raw.get("dvf") if isinstance(market_raw, dict) else None),
        normalize_dvf(study_raw.get("dvf") if isinstance(study_raw, dict) else None),
    )
    market = normalize_market(market_raw) or normalize_market(study_raw)

    if original is not None:
        risks = risks or original.risks
        dvf = dvf or original.dvf
        market = market or original.market

    if "missing" in payload:
        missing = _missing(payload.get("missing"))
    else:
        missing = list(original.missing) if original is not None else []

    operation = OperationSummary(
        meta=_meta(payload, original),
        dossier_id=_text(_first(payload, "dossier_id", "dossierId")) or (original.dossier_id if original else None),
        risks=risks,
        dvf=dvf,
        market=market,
        missing=missing,
        **sections,
    )
    logger.debug(
        "Operation normalized",
        extra={
            "dossier_id": operation.dossier_id,
            "has_risks": risks is not None,
            "has_dvf": dvf is not None,
            "has_market": market is not None,
        },
    )
    return operation


def has_enriched_data(operation: OperationSummary) -> bool:
    """True when a geo score, DVF transactions, a commune or a market price landed"""
    risks = operation.risks
    if risks is not None and isinstance(risks.geo, GeoRiskSummary):
        return True
    if operation.dvf is not None and operation.dvf.stats.transactions_count:
        return True
    market = operation.market
    if market is not None and (market.commune is not None or market.price_per_sqm):
        return True
    return False
