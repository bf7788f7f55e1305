"""Transaction factory and the tracing extensions registered on a hub."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from tracegate.config import TracingOptions
from tracegate.hub import Hub, TracingExtensions, get_current_hub
from tracegate.processors.sampler import SamplingContext, sample
from tracegate.tracer.idle_transaction import IdleTransaction
from tracegate.tracer.span_context import TransactionContext
from tracegate.tracer.transaction import Transaction

logger = logging.getLogger(__name__)

ContextLike = Union[TransactionContext, Mapping[str, Any]]


def trace_headers(hub: Hub) -> Dict[str, str]:
    """Return all trace headers for the span currently on the hub's scope."""
    span = hub.get_scope().get_span()
    if span is not None:
        return {"sentry-trace": span.to_traceparent()}
    return {}


def start_transaction(
    hub: Hub,
    transaction_context: ContextLike,
    custom_sampling_context: Optional[Dict[str, Any]] = None,
) -> Transaction:
    """
    Create a new transaction and add a sampling decision if it doesn't have one yet.

    ``Hub.start_transaction`` delegates here once the tracing extensions are
    registered.

    Args:
        hub: hub starting the transaction; its client's options drive sampling
        transaction_context: data used to configure the transaction
        custom_sampling_context: extra data handed to ``traces_sampler``

    Returns:
        The new transaction
    """
    context = _as_transaction_context(transaction_context)
    transaction = Transaction(context, hub)
    return sample(_options_of(hub), transaction, _sampling_context(context, custom_sampling_context))


def start_idle_transaction(
    hub: Hub,
    transaction_context: ContextLike,
    idle_timeout: Optional[float] = None,
    on_scope: bool = False,
    custom_sampling_context: Optional[Dict[str, Any]] = None,
) -> IdleTransaction:
    """Create a new idle transaction and add a sampling decision if it doesn't have one yet."""
    context = _as_transaction_context(transaction_context)
    transaction = IdleTransaction(context, hub, idle_timeout, on_scope)
    return sample(_options_of(hub), transaction, _sampling_context(context, custom_sampling_context))


def get_active_transaction(hub: Optional[Hub] = None) -> Optional[Transaction]:
    """Grab the active transaction off the scope, if any."""
    hub = hub if hub is not None else get_current_hub()
    return hub.get_scope().get_transaction()


def add_tracing_extensions(hub: Optional[Hub] = None) -> None:
    """
    Register the tracing extensions on ``hub`` (the main hub by default).

    Entries that are already present are left alone, so this is safe to call
    repeatedly.
    """
    hub = hub if hub is not None else get_current_hub()
    if hub.extensions is None:
        hub.extensions = TracingExtensions()
    if hub.extensions.start_transaction is None:
        hub.extensions.start_transaction = start_transaction
    if hub.extensions.trace_headers is None:
        hub.extensions.trace_headers = trace_headers
    logger.debug("[Tracing] Tracing extensions registered on hub")


def _sampling_context(
    context: TransactionContext,
    custom_sampling_context: Optional[Dict[str, Any]],
) -> SamplingContext:
    # custom keys win on collision
    return {
        "parent_sampled": context.parent_sampled,
        "transaction_context": context,
        **(custom_sampling_context or {}),
    }


def _as_transaction_context(transaction_context: ContextLike) -> TransactionContext:
    if isinstance(transaction_context, TransactionContext):
        return transaction_context
    return TransactionContext(**transaction_context)


def _options_of(hub: Hub) -> Optional[TracingOptions]:
    client = hub.get_client()
    return client.options if client is not None else None
