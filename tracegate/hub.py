"""Host registry: hub, scope and the optional tracing extension table."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from tracegate.config import TracingOptions
from tracegate.tracer.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class TracingExtensions:
    """
    Tracing capabilities a hub can be given without depending on them.

    Each entry is called with the hub as its first argument.
    """

    start_transaction: Optional[Callable[..., Any]] = None
    trace_headers: Optional[Callable[..., Dict[str, str]]] = None


class Scope:
    """Holds the span currently bound to the hub."""

    def __init__(self) -> None:
        self._span: Optional[Any] = None

    def set_span(self, span: Optional[Any]) -> None:
        self._span = span

    def get_span(self) -> Optional[Any]:
        return self._span

    def get_transaction(self) -> Optional[Transaction]:
        span = self._span
        return span if isinstance(span, Transaction) else None


class Client:
    def __init__(self, options: Optional[TracingOptions] = None) -> None:
        self.options = options if options is not None else TracingOptions()


class Hub:
    """
    Entry point for starting transactions.

    Tracing functionality is only available once ``extensions`` has been
    populated (see ``tracegate.hub_extensions.add_tracing_extensions``).
    """

    def __init__(self, client: Optional[Client] = None, scope: Optional[Scope] = None) -> None:
        self._client = client
        self._scope = scope if scope is not None else Scope()
        self.extensions: Optional[TracingExtensions] = None

    def get_client(self) -> Optional[Client]:
        return self._client

    def bind_client(self, client: Optional[Client]) -> None:
        self._client = client

    def get_scope(self) -> Scope:
        return self._scope

    def start_transaction(
        self,
        transaction_context: Any,
        custom_sampling_context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Transaction]:
        """Start a transaction and make a sampling decision for it."""
        return self._call_extension("start_transaction", transaction_context, custom_sampling_context)

    def trace_headers(self) -> Dict[str, str]:
        """Return the trace headers of the span bound to the scope."""
        return self._call_extension("trace_headers") or {}

    def _call_extension(self, method: str, *args: Any) -> Any:
        extension = getattr(self.extensions, method, None) if self.extensions is not None else None
        if callable(extension):
            return extension(self, *args)
        logger.warning(f"[Tracing] Extension method {method} couldn't be found, doing nothing.")
        return None


_main_hub: Optional[Hub] = None
_main_hub_lock = threading.Lock()


def get_current_hub() -> Hub:
    """Return the process-wide hub, creating an empty one on first use."""
    global _main_hub
    with _main_hub_lock:
        if _main_hub is None:
            _main_hub = Hub()
        return _main_hub


def set_current_hub(hub: Optional[Hub]) -> Optional[Hub]:
    """Replace the process-wide hub and return the previous one."""
    global _main_hub
    with _main_hub_lock:
        previous = _main_hub
        _main_hub = hub
        return previous
