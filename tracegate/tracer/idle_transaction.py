"""Idle transaction: finishes once no child activity has happened for a while."""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional, TYPE_CHECKING

from tracegate import runtime_config
from tracegate.tracer.span_context import TransactionContext
from tracegate.tracer.transaction import Transaction
from tracegate.utils.helpers import ms_to_sec

if TYPE_CHECKING:
    from tracegate.hub import Hub

logger = logging.getLogger(__name__)


class IdleTransaction(Transaction):
    """
    Transaction variant that tracks open child activities.

    The owner polls ``is_idle()`` (e.g. from a heartbeat) and calls
    ``finish()`` once it returns True. With ``on_scope`` the transaction is
    bound to the hub's scope for its lifetime.
    """

    def __init__(
        self,
        context: TransactionContext,
        hub: Optional["Hub"] = None,
        idle_timeout: Optional[float] = None,
        on_scope: bool = False,
    ) -> None:
        """
        Args:
            context: construction data
            hub: hub the transaction was started on
            idle_timeout: milliseconds without activity before the transaction is idle
            on_scope: bind the transaction to the hub's scope
        """
        super().__init__(context, hub)
        self.idle_timeout = idle_timeout if idle_timeout is not None else runtime_config.get_idle_timeout_ms()
        self.on_scope = on_scope
        self.activities: Dict[str, bool] = {}
        self._last_activity = time.time()

        if on_scope and hub is not None:
            logger.debug(f"[Tracing] Setting idle transaction on scope. Span ID: {self.span_id}")
            hub.get_scope().set_span(self)

    def push_activity(self, span_id: str) -> None:
        self.activities[span_id] = True
        logger.debug(f"[Tracing] pushActivity: {span_id}, new activities {len(self.activities)}")

    def pop_activity(self, span_id: str) -> None:
        if self.activities.pop(span_id, None):
            logger.debug(f"[Tracing] popActivity {span_id}, new activities {len(self.activities)}")
        self._last_activity = time.time()

    def is_idle(self, now: Optional[float] = None) -> bool:
        """True when no activity is open and ``idle_timeout`` has elapsed since the last one."""
        if self.activities:
            return False
        now = now if now is not None else time.time()
        return now - self._last_activity >= ms_to_sec(self.idle_timeout)

    def finish(self, end_timestamp: Optional[float] = None) -> bool:
        kept = super().finish(end_timestamp)

        if self.on_scope and self._hub is not None:
            scope = self._hub.get_scope()
            if scope.get_transaction() is self:
                scope.set_span(None)

        self.activities.clear()
        return kept
