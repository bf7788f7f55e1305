"""Bounded in-memory recorder for the spans of a sampled transaction."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, List, Optional

from tracegate import runtime_config

logger = logging.getLogger(__name__)


class SpanRecorder:
    """
    Keeps up to ``max_spans`` spans for a transaction.

    Once full, incoming spans are dropped (the oldest ones, starting with the
    transaction itself, are kept).
    """

    def __init__(self, max_spans: Optional[int] = None) -> None:
        if max_spans is None:
            max_spans = runtime_config.get_max_spans()
        self.max_spans = max_spans
        self._spans: Deque[Any] = deque()
        self.dropped = 0

    def add(self, span: Any) -> bool:
        """
        Record a span.

        Returns True if the span was recorded, False if it was dropped.
        """
        if len(self._spans) < self.max_spans:
            self._spans.append(span)
            return True
        self.dropped += 1
        logger.debug(f"[Tracing] Span recorder full ({self.max_spans}), dropping span")
        return False

    @property
    def spans(self) -> List[Any]:
        return list(self._spans)

    def __len__(self) -> int:
        return len(self._spans)
