"""Trace header codecs."""

from tracegate.context.propagators import (
    SENTRY_TRACE_HEADER,
    TRACEPARENT_HEADER,
    TRACESTATE_HEADER,
    TRACEPARENT_REGEXP,
    compute_tracestate_value,
    decode_tracestate_value,
    extract_traceparent_data,
    extract_transaction_context,
    extract_w3c_traceparent,
    format_sentry_trace,
    inject_trace_headers,
    parse_tracestate,
    to_otel_span_context,
)

__all__ = [
    "SENTRY_TRACE_HEADER",
    "TRACEPARENT_HEADER",
    "TRACESTATE_HEADER",
    "TRACEPARENT_REGEXP",
    "compute_tracestate_value",
    "decode_tracestate_value",
    "extract_traceparent_data",
    "extract_transaction_context",
    "extract_w3c_traceparent",
    "format_sentry_trace",
    "inject_trace_headers",
    "parse_tracestate",
    "to_otel_span_context",
]
