"""Health and metrics data for the webhook server."""

import time
from collections import defaultdict
from typing import Any

# Histogram buckets in seconds
DURATION_BUCKETS = [0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]


def _empty_histogram() -> dict[str, Any]:
    return {"buckets": [0] * len(DURATION_BUCKETS), "count": 0, "sum": 0.0}


def new_metrics_data(users_configured: int = 0, clusters_configured: int = 0) -> dict[str, Any]:
    """Create an empty metrics store."""
    return {
        "callback_requests_total": defaultdict(
            lambda: defaultdict(int)
        ),  # callback -> outcome -> count
        "callback_request_durations": defaultdict(_empty_histogram),  # callback -> histogram
        "users_configured": users_configured,
        "clusters_configured": clusters_configured,
        "server_start_time": time.time(),
    }


def record_callback(
    metrics_data: dict[str, Any], callback: str, outcome: str, duration_ms: float
) -> None:
    """Count one handled callback."""
    metrics_data["callback_requests_total"][callback][outcome] += 1

    duration_s = duration_ms / 1000.0
    histogram = metrics_data["callback_request_durations"][callback]
    for i, bucket in enumerate(DURATION_BUCKETS):
        if duration_s <= bucket:
            histogram["buckets"][i] += 1
    histogram["count"] += 1
    histogram["sum"] += duration_s


def get_health_data(metrics_data: dict[str, Any]) -> dict[str, Any]:
    """Get server health status."""
    return {
        "status": "healthy",
        "uptime_seconds": time.time() - metrics_data["server_start_time"],
        "users_configured": metrics_data["users_configured"],
        "clusters_configured": metrics_data["clusters_configured"],
    }


def get_prometheus_metrics(metrics_data: dict[str, Any]) -> str:
    """Generate Prometheus metrics format."""
    lines = []

    lines.append(
        "# HELP sshhook_callback_requests_total Total number of webhook callbacks"
    )
    lines.append("# TYPE sshhook_callback_requests_total counter")
    for callback, outcomes in metrics_data["callback_requests_total"].items():
        for outcome, count in outcomes.items():
            lines.append(
                f'sshhook_callback_requests_total{{callback="{callback}",outcome="{outcome}"}} {count}'
            )

    lines.append(
        "# HELP sshhook_callback_request_duration_seconds Webhook callback durations"
    )
    lines.append("# TYPE sshhook_callback_request_duration_seconds histogram")
    for callback, histogram in metrics_data["callback_request_durations"].items():
        # Buckets are already cumulative: each observation lands in every bucket above it
        for bucket, count in zip(DURATION_BUCKETS, histogram["buckets"]):
            lines.append(
                f'sshhook_callback_request_duration_seconds_bucket{{callback="{callback}",le="{bucket}"}} {count}'
            )
        lines.append(
            f'sshhook_callback_request_duration_seconds_bucket{{callback="{callback}",le="+Inf"}} {histogram["count"]}'
        )
        lines.append(
            f'sshhook_callback_request_duration_seconds_count{{callback="{callback}"}} {histogram["count"]}'
        )
        lines.append(
            f'sshhook_callback_request_duration_seconds_sum{{callback="{callback}"}} {histogram["sum"]}'
        )

    lines.append("# HELP sshhook_users_configured Number of configured users")
    lines.append("# TYPE sshhook_users_configured gauge")
    lines.append(f"sshhook_users_configured {metrics_data['users_configured']}")

    lines.append("# HELP sshhook_clusters_configured Number of configured clusters")
    lines.append("# TYPE sshhook_clusters_configured gauge")
    lines.append(f"sshhook_clusters_configured {metrics_data['clusters_configured']}")

    return "\n".join(lines) + "\n"
