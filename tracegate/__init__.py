"""tracegate: sampling decisions and trace header propagation for transactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from tracegate import runtime_config
from tracegate.config import TracingOptions, load_options
from tracegate.context.propagators import (
    compute_tracestate_value,
    extract_traceparent_data,
    extract_transaction_context,
    inject_trace_headers,
)
from tracegate.errors import ConfigError, TracegateError, TracestateEncodingError
from tracegate.hub import Client, Hub, Scope, get_current_hub, set_current_hub
from tracegate.hub_extensions import (
    add_tracing_extensions,
    get_active_transaction,
    start_idle_transaction,
)
from tracegate.processors.sampler import SamplingMethod, is_valid_sample_rate, sample
from tracegate.tracer import IdleTransaction, Transaction, TransactionContext

__version__ = "0.1.0"

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def init(options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Hub:
    """
    Configure the main hub for tracing.

    Builds TracingOptions from ``options`` and keyword arguments, binds a
    client carrying them to the main hub and registers the tracing
    extensions. Calling it again replaces the client.

    Raises:
        ConfigError: the options are invalid
    """
    opts = load_options(options, **kwargs)

    runtime_config.set_debug(opts.debug)
    logger.setLevel(logging.DEBUG if opts.debug else logging.NOTSET)

    hub = get_current_hub()
    hub.bind_client(Client(opts))
    add_tracing_extensions(hub)

    logger.debug(f"[Tracing] Initialized (sample rate={opts.traces_sample_rate!r}, sampler={opts.traces_sampler!r})")
    return hub


def start_transaction(
    transaction_context: Any,
    custom_sampling_context: Optional[Dict[str, Any]] = None,
) -> Optional[Transaction]:
    """Start a transaction on the main hub."""
    return get_current_hub().start_transaction(transaction_context, custom_sampling_context)


__all__ = [
    "__version__",
    "init",
    "start_transaction",
    "start_idle_transaction",
    "get_active_transaction",
    "add_tracing_extensions",
    "get_current_hub",
    "set_current_hub",
    "Hub",
    "Client",
    "Scope",
    "Transaction",
    "IdleTransaction",
    "TransactionContext",
    "TracingOptions",
    "load_options",
    "SamplingMethod",
    "sample",
    "is_valid_sample_rate",
    "extract_traceparent_data",
    "extract_transaction_context",
    "inject_trace_headers",
    "compute_tracestate_value",
    "TracegateError",
    "ConfigError",
    "TracestateEncodingError",
]
