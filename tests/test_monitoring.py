"""Tests for the monitoring module."""

import time

from sshhook.monitoring import (
    get_health_data,
    get_prometheus_metrics,
    new_metrics_data,
    record_callback,
)


class TestMonitoring:
    """Test the monitoring functionality."""

    def test_get_health_data(self) -> None:
        """Test health data generation."""
        metrics_data = new_metrics_data(users_configured=3, clusters_configured=2)
        metrics_data["server_start_time"] = time.time() - 10

        health_data = get_health_data(metrics_data)

        assert health_data["status"] == "healthy"
        assert health_data["users_configured"] == 3
        assert health_data["clusters_configured"] == 2
        assert health_data["uptime_seconds"] >= 10

    def test_get_prometheus_metrics_empty(self) -> None:
        """Test Prometheus metrics generation with empty data."""
        metrics_text = get_prometheus_metrics(new_metrics_data())

        assert "# HELP sshhook_callback_requests_total" in metrics_text
        assert "# TYPE sshhook_callback_requests_total counter" in metrics_text
        assert "# TYPE sshhook_callback_request_duration_seconds histogram" in metrics_text
        assert "sshhook_users_configured 0" in metrics_text
        assert "sshhook_clusters_configured 0" in metrics_text
        assert metrics_text.endswith("\n")

    def test_record_callback(self) -> None:
        """Test counters and histogram after recording callbacks."""
        metrics_data = new_metrics_data()

        record_callback(metrics_data, "password", "accepted", 0.5)
        record_callback(metrics_data, "password", "accepted", 20.0)
        record_callback(metrics_data, "password", "rejected", 2000.0)

        assert metrics_data["callback_requests_total"]["password"]["accepted"] == 2
        assert metrics_data["callback_requests_total"]["password"]["rejected"] == 1

        metrics_text = get_prometheus_metrics(metrics_data)

        assert (
            'sshhook_callback_requests_total{callback="password",outcome="accepted"} 2'
            in metrics_text
        )
        # 0.5ms falls in every bucket, 20ms from 0.05s up, 2s only in +Inf
        assert (
            'sshhook_callback_request_duration_seconds_bucket{callback="password",le="0.001"} 1'
            in metrics_text
        )
        assert (
            'sshhook_callback_request_duration_seconds_bucket{callback="password",le="0.05"} 2'
            in metrics_text
        )
        assert (
            'sshhook_callback_request_duration_seconds_bucket{callback="password",le="1.0"} 2'
            in metrics_text
        )
        assert (
            'sshhook_callback_request_duration_seconds_bucket{callback="password",le="+Inf"} 3'
            in metrics_text
        )
        assert (
            'sshhook_callback_request_duration_seconds_count{callback="password"} 3'
            in metrics_text
        )
