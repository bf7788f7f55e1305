"""Trace header codecs: ``sentry-trace``, ``tracestate`` and W3C trace context.

The W3C side goes through OpenTelemetry's standard propagator so the headers
we emit and accept interoperate with any OpenTelemetry-instrumented peer.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

from opentelemetry.trace import NonRecordingSpan, get_current_span, set_span_in_context
from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags, TraceState
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from tracegate.errors import TracestateEncodingError
from tracegate.tracer.span_context import TraceparentData, TracestateData, TransactionContext
from tracegate.utils.helpers import format_span_id, format_trace_id, parse_span_id, parse_trace_id

SENTRY_TRACE_HEADER = "sentry-trace"
TRACEPARENT_HEADER = "traceparent"
TRACESTATE_HEADER = "tracestate"
TRACESTATE_KEY = "sentry"

# Matched with fullmatch(), so the whole string must conform.
TRACEPARENT_REGEXP = re.compile(
    r"[ \t]*"  # whitespace
    r"([0-9a-f]{32})?"  # trace_id
    r"-?([0-9a-f]{16})?"  # span_id
    r"-?([01])?"  # sampled
    r"[ \t]*"  # whitespace
)

_TRAILING_PADDING = re.compile(r"={1,2}$")

# Longest value OpenTelemetry accepts for a tracestate entry.
MAX_TRACESTATE_VALUE_LENGTH = 256

_propagator = TraceContextTextMapPropagator()

logger = logging.getLogger(__name__)


def extract_traceparent_data(header_value: Any) -> Optional[TraceparentData]:
    """
    Extract transaction context data from a ``sentry-trace`` header.

    Returns None if the header is malformed; callers treat that the same as
    a missing header.
    """
    if not isinstance(header_value, str):
        return None

    matches = TRACEPARENT_REGEXP.fullmatch(header_value)
    if not matches:
        return None

    parent_sampled = None
    if matches.group(3) == "1":
        parent_sampled = True
    elif matches.group(3) == "0":
        parent_sampled = False

    return TraceparentData(
        trace_id=matches.group(1),
        parent_span_id=matches.group(2),
        parent_sampled=parent_sampled,
    )


def format_sentry_trace(trace_id: str, span_id: str, sampled: Optional[bool] = None) -> str:
    """Format a ``sentry-trace`` header value. The sampled flag is omitted when undecided."""
    sampled_string = ""
    if sampled is not None:
        sampled_string = "-1" if sampled else "-0"
    return f"{trace_id}-{span_id}{sampled_string}"


def compute_tracestate_value(data: Union[TracestateData, Mapping[str, Any]]) -> str:
    """
    Compute the value of the ``sentry`` entry of a tracestate header.

    Missing environment and release are sent as an explicit null. The result
    is unpadded base64 of the UTF-8 JSON document, since ``=`` is a separator
    in the tracestate grammar.

    Raises:
        TracestateEncodingError: the data could not be serialized
    """
    try:
        fields: Dict[str, Any] = asdict(data) if is_dataclass(data) else dict(data)
        payload = {
            "trace_id": fields.pop("trace_id", None),
            "environment": fields.pop("environment", None) or None,
            "release": fields.pop("release", None) or None,
            "public_key": fields.pop("public_key", None),
            **fields,
        }
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    except (TypeError, ValueError) as e:
        raise TracestateEncodingError(
            f"[Tracing] Error creating tracestate header: {e}",
            details={"cause": type(e).__name__},
        ) from e

    return _TRAILING_PADDING.sub("", encoded)


def decode_tracestate_value(value: str) -> Optional[Dict[str, Any]]:
    """Decode a ``sentry`` tracestate entry. Returns None if it is not valid base64 JSON."""
    if not value:
        return None
    value = value.strip()
    padded = value + "=" * (-len(value) % 4)
    try:
        decoded = json.loads(base64.b64decode(padded, validate=True).decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None


def parse_tracestate(header_value: str) -> Dict[str, str]:
    """
    Parse a tracestate header into a dict.

    Parses W3C Trace Context tracestate format: key1=value1,key2=value2
    """
    if not header_value:
        return {}

    result = {}
    for item in header_value.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        key = key.strip().lower()
        value = value.strip()
        if key and value:
            result[key] = value

    return result


def to_otel_span_context(
    trace_id: str,
    span_id: str,
    sampled: Optional[bool],
    tracestate_value: Optional[str] = None,
) -> OTelSpanContext:
    """Convert our ids and decision into an OpenTelemetry SpanContext."""
    trace_state = TraceState()
    if tracestate_value and len(tracestate_value) > MAX_TRACESTATE_VALUE_LENGTH:
        logger.warning(
            "[Tracing] tracestate value is %d characters long (limit %d), leaving out the tracestate header.",
            len(tracestate_value),
            MAX_TRACESTATE_VALUE_LENGTH,
        )
    elif tracestate_value:
        trace_state = TraceState([(TRACESTATE_KEY, tracestate_value)])

    return OTelSpanContext(
        trace_id=parse_trace_id(trace_id),
        span_id=parse_span_id(span_id),
        is_remote=False,
        trace_flags=TraceFlags(TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT),
        trace_state=trace_state,
    )


def inject_trace_headers(
    headers: MutableMapping[str, str],
    transaction: Any,
    options: Optional[Any] = None,
) -> None:
    """
    Inject ``sentry-trace``, ``traceparent`` and (with a public key in
    ``options``) ``tracestate`` headers for ``transaction``.

    Raises:
        TracestateEncodingError: the tracestate value could not be built; no
            header is written in that case
    """
    tracestate_value = None
    if options is not None and getattr(options, "public_key", None):
        tracestate_value = compute_tracestate_value(
            TracestateData(
                trace_id=transaction.trace_id,
                public_key=options.public_key,
                environment=options.environment,
                release=options.release,
            )
        )

    headers[SENTRY_TRACE_HEADER] = transaction.to_traceparent()

    otel_context = to_otel_span_context(
        transaction.trace_id, transaction.span_id, transaction.sampled, tracestate_value
    )
    _propagator.inject(headers, context=set_span_in_context(NonRecordingSpan(otel_context)))


def extract_w3c_traceparent(headers: Mapping[str, str]) -> Optional[TraceparentData]:
    """
    Read a W3C ``traceparent`` header using OpenTelemetry's parser.

    W3C has no "undecided" flag, so ``parent_sampled`` is always a bool here.
    """
    carrier = {str(k).lower(): v for k, v in headers.items()}
    ctx = _propagator.extract(carrier)

    otel_context = get_current_span(context=ctx).get_span_context()
    if not otel_context.is_valid:
        return None

    return TraceparentData(
        trace_id=format_trace_id(otel_context.trace_id),
        parent_span_id=format_span_id(otel_context.span_id),
        parent_sampled=otel_context.trace_flags.sampled,
    )


def extract_transaction_context(headers: Mapping[str, str], **fields: Any) -> TransactionContext:
    """
    Build a TransactionContext from inbound request headers.

    ``sentry-trace`` wins over W3C ``traceparent``. When neither header yields
    usable data the context starts a new trace.
    """
    data = None
    sentry_trace = _get_header(headers, SENTRY_TRACE_HEADER)
    if sentry_trace is not None:
        data = extract_traceparent_data(sentry_trace)
    if data is None or data.trace_id is None:
        data = extract_w3c_traceparent(headers) or data

    tracestate_value = parse_tracestate(_get_header(headers, TRACESTATE_HEADER) or "").get(TRACESTATE_KEY)
    if tracestate_value:
        metadata = dict(fields.pop("metadata", None) or {})
        metadata.setdefault("tracestate", {TRACESTATE_KEY: tracestate_value})
        fields["metadata"] = metadata

    return TransactionContext.from_traceparent_data(data, **fields)


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Case-insensitive lookup
    for key, value in headers.items():
        if str(key).lower() == name:
            return value
    return None
