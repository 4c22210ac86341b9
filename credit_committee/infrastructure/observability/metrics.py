"""Prometheus metrics for monitoring decision drafts, SmartScore grades and stress outcomes"""

from prometheus_client import Counter, Histogram

# Intake metrics
decision_draft_counter = Counter(
    "committee_decision_draft_total",
    "Decision drafts produced by the intake pipeline",
    ["verdict"],  # GO | GO_SOUS_CONDITIONS | NO_GO
)

# SmartScore metrics
smartscore_grade_counter = Counter(
    "committee_smartscore_grade_total",
    "SmartScore results by borrower profile and grade",
    ["profile", "grade"],
)

smartscore_blocker_counter = Counter(
    "committee_smartscore_blockers_total",
    "SmartScore results carrying at least one blocker",
)

# Committee pack metrics
stress_worst_case_counter = Counter(
    "committee_stress_worst_case_total",
    "Worst stress case per committee pack",
    ["case"],  # base | rent_-10 | rent_-20 | value_-10 | rate_+1
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision_draft(verdict: str) -> None:
    decision_draft_counter.labels(verdict=verdict).inc()


def record_smartscore(profile: str, grade: str, has_blockers: bool) -> None:
    """Record grade distribution per profile and how often data gaps block the score"""
    smartscore_grade_counter.labels(profile=profile, grade=grade).inc()
    if has_blockers:
        smartscore_blocker_counter.inc()


def record_stress_pack(worst_case: str) -> None:
    stress_worst_case_counter.labels(case=worst_case).inc()
