"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from credit_committee.domain.intake import ConditionSequence

# One sequence per process so auto-condition ids never repeat between requests
_condition_sequence = ConditionSequence()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_condition_sequence() -> ConditionSequence:
    """Provide the process-wide auto-condition id sequence"""
    return _condition_sequence
