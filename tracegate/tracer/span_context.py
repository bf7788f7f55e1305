"""Trace context value objects."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TraceparentData:
    """Fields decoded from a ``sentry-trace`` header. Any of them may be missing."""

    trace_id: Optional[str] = None
    parent_span_id: Optional[str] = None
    parent_sampled: Optional[bool] = None


@dataclass
class TracestateData:
    trace_id: str
    public_key: str
    environment: Optional[str] = None
    release: Optional[str] = None


@dataclass
class TransactionContext:
    """Data used to construct a transaction."""

    name: str = ""
    op: Optional[str] = None
    description: Optional[str] = None
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    parent_span_id: Optional[str] = None
    sampled: Optional[bool] = None  # pre-set decision
    parent_sampled: Optional[bool] = None
    tags: Dict[str, str] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_traceparent_data(cls, data: Optional[TraceparentData], **fields: Any) -> "TransactionContext":
        """Build a context continuing the trace described by ``data`` (if any)."""
        if data is not None:
            fields.setdefault("trace_id", data.trace_id)
            fields.setdefault("parent_span_id", data.parent_span_id)
            fields.setdefault("parent_sampled", data.parent_sampled)
        return cls(**fields)
