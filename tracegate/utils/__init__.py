"""Utility functions for tracegate."""

from tracegate.utils.helpers import (
    format_trace_id,
    format_span_id,
    parse_trace_id,
    parse_span_id,
    ms_to_sec,
    sec_to_ms,
    strip_url_query_and_fragment,
)

__all__ = [
    "format_trace_id",
    "format_span_id",
    "parse_trace_id",
    "parse_span_id",
    "ms_to_sec",
    "sec_to_ms",
    "strip_url_query_and_fragment",
]
