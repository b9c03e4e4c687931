"""Prometheus metrics for Parley.

Counts authentication attempts, message delivery outcomes and live event
intake, plus a gauge of active sessions. All updates go through the
``record_*`` helpers, which do nothing while metrics are disabled.
"""

from prometheus_client import Counter, Gauge

_enabled = True

# Identity metrics
AUTH_ATTEMPTS = Counter(
    "parley_auth_attempts_total",
    "Identity operations by outcome",
    labelnames=["operation", "outcome"],
)

# Session metrics
ACTIVE_SESSIONS = Gauge(
    "parley_active_sessions",
    "Number of sessions currently in active mode",
)

# Message metrics
MESSAGES_SENT = Counter(
    "parley_messages_sent_total",
    "Messages sent locally (optimistic echo applied)",
    labelnames=["kind"],
)

DELIVERY_OUTCOMES = Counter(
    "parley_message_delivery_total",
    "Persistence hand-off outcomes",
    labelnames=["outcome"],
)

# Live event metrics
EVENTS_APPLIED = Counter(
    "parley_live_events_applied_total",
    "Live events applied to session state",
    labelnames=["kind"],
)

EVENTS_DROPPED = Counter(
    "parley_live_events_dropped_total",
    "Live events dropped as malformed, stale or over capacity",
    labelnames=["reason"],
)


def setup_metrics(enabled: bool = True) -> None:
    """Turn metric recording on or off.

    Metrics are registered with the default registry when defined; this only
    decides whether the helpers below update them.
    """
    global _enabled
    _enabled = enabled


def metrics_enabled() -> bool:
    """Whether metric updates are currently recorded."""
    return _enabled


def record_auth(operation: str, outcome: str) -> None:
    """Record an identity operation outcome."""
    if _enabled:
        AUTH_ATTEMPTS.labels(operation=operation, outcome=outcome).inc()


def record_message_sent(kind: str) -> None:
    """Record a locally sent message."""
    if _enabled:
        MESSAGES_SENT.labels(kind=kind).inc()


def record_delivery(outcome: str) -> None:
    """Record a persistence hand-off outcome (sent, failed, stale)."""
    if _enabled:
        DELIVERY_OUTCOMES.labels(outcome=outcome).inc()


def record_event(kind: str) -> None:
    """Record an applied live event."""
    if _enabled:
        EVENTS_APPLIED.labels(kind=kind).inc()


def record_dropped_event(reason: str) -> None:
    """Record a dropped live event."""
    if _enabled:
        EVENTS_DROPPED.labels(reason=reason).inc()


def session_started() -> None:
    """Count a session entering active mode."""
    if _enabled:
        ACTIVE_SESSIONS.inc()


def session_ended() -> None:
    """Count a session leaving active mode."""
    if _enabled:
        ACTIVE_SESSIONS.dec()
