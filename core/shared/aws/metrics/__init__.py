"""
core/shared/aws/metrics - CloudWatch Metrics Utilities

Usage:
    from core.shared.aws.metrics import build_workspaces_connection_query, get_metric_series

    query = build_workspaces_connection_query("ws-abc123")
    series = get_metric_series(cloudwatch, [query], start, end)
    daily_maxima = series[query.id]
"""

from .batch_metrics import (
    DAILY_PERIOD,
    FAILED_STATUS_CODES,
    MetricDataError,
    MetricQuery,
    build_workspaces_connection_query,
    get_metric_series,
    sanitize_metric_id,
)

__all__ = [
    "DAILY_PERIOD",
    "FAILED_STATUS_CODES",
    "MetricDataError",
    "MetricQuery",
    "build_workspaces_connection_query",
    "get_metric_series",
    "sanitize_metric_id",
]
