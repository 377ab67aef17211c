"""
Prometheus Metrics
==================
Counters for access gate decisions and signature verification outcomes.
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

# Custom registry so the gate's metrics can be mounted independently
GATE_REGISTRY = CollectorRegistry()

GATE_DECISIONS_TOTAL = Counter(
    name="access_gate_decisions_total",
    documentation="Access gate decisions by outcome and reason",
    labelnames=["outcome", "reason"],
    registry=GATE_REGISTRY,
)

SIGNATURE_VERIFICATIONS_TOTAL = Counter(
    name="signature_verifications_total",
    documentation="Signed URL verifications by result",
    labelnames=["result"],
    registry=GATE_REGISTRY,
)


def record_decision(outcome: str, reason: str) -> None:
    """Count a gate decision."""
    GATE_DECISIONS_TOTAL.labels(outcome=outcome, reason=reason).inc()


def record_verification(result: str) -> None:
    """Count a signature verification ("valid" or the error kind)."""
    SIGNATURE_VERIFICATIONS_TOTAL.labels(result=result).inc()


def render_metrics():
    """Gate registry in Prometheus text format as (body, content type)."""
    return generate_latest(GATE_REGISTRY), CONTENT_TYPE_LATEST
