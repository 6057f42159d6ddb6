"""
Prometheus metrics for the prompt composer
"""
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram, Info,
                               generate_latest)
from prometheus_client.registry import REGISTRY

# ============================================================================
# HTTP
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# ============================================================================
# Database
# ============================================================================

db_queries_total = Counter(
    "db_queries_total",
    "Total number of database statements",
    ["operation"]
)

db_query_duration_seconds = Histogram(
    "db_query_duration_seconds",
    "Database statement duration in seconds",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

db_transactions_total = Counter(
    "db_transactions_total",
    "Units of work by outcome",
    ["outcome"]  # committed | rolled_back
)

# ============================================================================
# Domain
# ============================================================================

validation_failures_total = Counter(
    "validation_failures_total",
    "Writes rejected by the validator",
    ["entity"]  # component | preset
)

prompt_compositions_total = Counter(
    "prompt_compositions_total",
    "Chat turns resolved, by the branch that supplied the prompt",
    ["source"]  # preset | manual | default
)

prompt_component_cascades_total = Counter(
    "prompt_component_cascades_total",
    "Preset slots cleared because the referenced component was deleted"
)

usage_events_total = Counter(
    "usage_events_total",
    "Usage increments recorded after completed generations",
    ["entity"]  # component | preset
)

app_info = Info("prompt_composer", "Prompt composer service information")


def get_metrics() -> bytes:
    """Render all registered metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
