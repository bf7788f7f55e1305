"""Transaction: the unit of work the sampling engine decides on."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, TYPE_CHECKING

from opentelemetry.sdk.trace.id_generator import RandomIdGenerator

from tracegate.tracer.span_context import TransactionContext
from tracegate.tracer.span_recorder import SpanRecorder
from tracegate.utils.helpers import format_span_id, format_trace_id

if TYPE_CHECKING:
    from opentelemetry.trace import SpanContext as OTelSpanContext
    from tracegate.hub import Hub

logger = logging.getLogger(__name__)

_id_generator = RandomIdGenerator()

UNLABELED_TRANSACTION = "<unlabeled transaction>"


class Transaction:
    """
    A top-level unit of tracing work.

    The sampling engine only relies on ``sampled``, ``set_metadata()`` and
    ``init_span_recorder()``; everything else is for callers.
    """

    def __init__(self, context: TransactionContext, hub: Optional["Hub"] = None) -> None:
        """
        Initialize a transaction from its context.

        Args:
            context: construction data; missing ids are generated
            hub: hub the transaction was started on
        """
        self._hub = hub
        self.name = context.name
        self.op = context.op
        self.description = context.description
        self.trace_id = context.trace_id or format_trace_id(_id_generator.generate_trace_id())
        self.span_id = context.span_id or format_span_id(_id_generator.generate_span_id())
        self.parent_span_id = context.parent_span_id
        self.sampled: Optional[bool] = context.sampled
        self.tags: Dict[str, str] = dict(context.tags)
        self.data: Dict[str, Any] = dict(context.data)
        self.metadata: Dict[str, Any] = dict(context.metadata)

        self.start_timestamp = time.time()
        self.end_timestamp: Optional[float] = None
        self.span_recorder: Optional[SpanRecorder] = None

    def set_metadata(self, new_metadata: Dict[str, Any]) -> None:
        """Merge ``new_metadata`` into the transaction metadata."""
        self.metadata.update(new_metadata)

    def init_span_recorder(self, max_spans: Optional[int] = None) -> None:
        """Attach a span recorder (once) and record the transaction itself in it."""
        if self.span_recorder is None:
            self.span_recorder = SpanRecorder(max_spans)
        self.span_recorder.add(self)

    def to_traceparent(self) -> str:
        """Return the ``sentry-trace`` header value for this transaction."""
        from tracegate.context.propagators import format_sentry_trace

        return format_sentry_trace(self.trace_id, self.span_id, self.sampled)

    def to_span_context(self, tracestate_value: Optional[str] = None) -> "OTelSpanContext":
        """Return an OpenTelemetry SpanContext carrying this transaction's ids and decision."""
        from tracegate.context.propagators import to_otel_span_context

        return to_otel_span_context(self.trace_id, self.span_id, self.sampled, tracestate_value)

    @property
    def is_finished(self) -> bool:
        return self.end_timestamp is not None

    def finish(self, end_timestamp: Optional[float] = None) -> bool:
        """
        Finish the transaction.

        Returns True if the transaction is kept (sampled) and should be handed
        to the recording layer, False otherwise.
        """
        if self.is_finished:
            return False

        if not self.name:
            logger.warning(f"[Tracing] Transaction has no name, falling back to `{UNLABELED_TRANSACTION}`.")
            self.name = UNLABELED_TRANSACTION

        self.end_timestamp = end_timestamp if end_timestamp is not None else time.time()

        if self.sampled is not True:
            logger.info("[Tracing] Discarding transaction because its trace was not chosen to be sampled.")
            return False

        return True

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} name={self.name!r} op={self.op!r} "
            f"trace_id={self.trace_id} sampled={self.sampled}>"
        )
