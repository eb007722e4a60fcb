"""Monitoring configuration for the review scheduler."""
from prometheus_client import Counter, Gauge, start_http_server

# Session metrics
review_sessions = Counter(
    "wordreview_sessions_total",
    "Total number of review sessions started",
)

session_outcomes = Counter(
    "wordreview_session_outcomes_total",
    "Review sessions by terminal state",
    ["state"],
)

# Review metrics
reviews_recorded = Counter(
    "wordreview_reviews_recorded_total",
    "Total number of review outcomes persisted",
    ["outcome"],
)

due_words = Gauge(
    "wordreview_due_words",
    "Number of due words seen by the last due-count refresh",
)

# Error metrics
review_errors = Counter(
    "wordreview_errors_total",
    "Total number of errors surfaced by review sessions",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
