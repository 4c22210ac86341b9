"""Structured JSON logging for committee decision traceability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from credit_committee.config import settings


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_dossier_evaluation(
    request_id: str,
    dossier_id: str,
    verdict: str,
    completeness_pct: int,
    risk_level: str,
    duration_ms: float,
) -> None:
    """Log the outcome of an intake evaluation"""
    logging.info(
        "Dossier evaluated",
        extra={
            "request_id": request_id,
            "dossier_id": dossier_id,
            "step": "evaluation_complete",
            "verdict": verdict,
            "completeness_pct": completeness_pct,
            "risk_level": risk_level,
            "duration_ms": duration_ms,
        },
    )


def log_smartscore(
    request_id: str,
    dossier_id: Optional[str],
    profile: str,
    score: int,
    grade: str,
    blocker_count: int,
    duration_ms: float,
) -> None:
    """Log a SmartScore computation"""
    logging.info(
        "SmartScore computed",
        extra={
            "request_id": request_id,
            "dossier_id": dossier_id,
            "step": "smartscore_complete",
            "profile": profile,
            "score": score,
            "grade": grade,
            "blocker_count": blocker_count,
            "duration_ms": duration_ms,
        },
    )


def log_committee_pack(
    request_id: str,
    programme_name: str,
    acceptance_score: int,
    quadrant: str,
    worst_case: str,
    duration_ms: float,
) -> None:
    """Log the committee pack summary"""
    logging.info(
        "Committee pack built",
        extra={
            "request_id": request_id,
            "programme_name": programme_name,
            "step": "committee_pack_complete",
            "acceptance_score": acceptance_score,
            "quadrant": quadrant,
            "worst_case": worst_case,
            "duration_ms": duration_ms,
        },
    )
