"""Transaction model consumed by the sampling engine."""

from tracegate.tracer.idle_transaction import IdleTransaction
from tracegate.tracer.span_context import TraceparentData, TracestateData, TransactionContext
from tracegate.tracer.span_recorder import SpanRecorder
from tracegate.tracer.transaction import Transaction

__all__ = [
    "IdleTransaction",
    "SpanRecorder",
    "TraceparentData",
    "TracestateData",
    "Transaction",
    "TransactionContext",
]
