"""Sampling decisions for transactions."""

from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import Any, Dict, Optional, TypeVar

from tracegate.config import TracingOptions
from tracegate.tracer.transaction import Transaction

logger = logging.getLogger(__name__)

SamplingContext = Dict[str, Any]

T = TypeVar("T", bound=Transaction)


class SamplingMethod(Enum):
    """Which rule produced a transaction's sampling decision."""

    EXPLICIT = "explicitly_set"
    SAMPLER = "client_sampler"
    INHERITANCE = "inheritance"
    RATE = "client_rate"


def has_tracing_enabled(options: Optional[TracingOptions]) -> bool:
    """
    Tracing is enabled when ``traces_sample_rate`` or ``traces_sampler`` was
    provided at all, even with a value that later turns out to be invalid.
    """
    if options is None:
        return False
    provided = options.model_fields_set
    return "traces_sample_rate" in provided or "traces_sampler" in provided


def is_valid_sample_rate(rate: Any) -> bool:
    """
    Check that a sample rate is a bool, or a number between 0 and 1.

    Logs a warning describing the value when it isn't.
    """
    # nan passes the type check, so it needs its own
    if not isinstance(rate, (bool, int, float)) or (isinstance(rate, float) and math.isnan(rate)):
        logger.warning(
            "[Tracing] Given sample rate is invalid. Sample rate must be a boolean or a number "
            f"between 0 and 1. Got {rate!r} of type {type(rate).__name__!r}."
        )
        return False

    # booleans compare as 0 and 1
    if rate < 0 or rate > 1:
        logger.warning(f"[Tracing] Given sample rate is invalid. Sample rate must be between 0 and 1. Got {rate}.")
        return False
    return True


def _as_number(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    return math.nan


def sample(options: Optional[TracingOptions], transaction: T, sampling_context: SamplingContext) -> T:
    """
    Make a sampling decision for ``transaction`` and store it on the transaction.

    Only transactions that come out with ``sampled`` set to True are recorded.

    Args:
        options: client options, or None when no client is configured
        transaction: transaction needing a decision
        sampling_context: default and user-provided data for ``traces_sampler``

    Returns:
        The same transaction, with ``sampled`` set
    """
    if not has_tracing_enabled(options):
        transaction.sampled = False
        return transaction

    # a decision passed in the transaction context wins
    if transaction.sampled is not None:
        transaction.set_metadata({"transaction_sampling": {"method": SamplingMethod.EXPLICIT}})
        return transaction

    sampler = options.traces_sampler
    if callable(sampler):
        sample_rate = sampler(sampling_context)
        transaction.set_metadata(
            {"transaction_sampling": {"method": SamplingMethod.SAMPLER, "rate": _as_number(sample_rate)}}
        )
    elif sampling_context.get("parent_sampled") is not None:
        sample_rate = sampling_context["parent_sampled"]
        transaction.set_metadata({"transaction_sampling": {"method": SamplingMethod.INHERITANCE}})
    else:
        sample_rate = options.traces_sample_rate
        transaction.set_metadata(
            {"transaction_sampling": {"method": SamplingMethod.RATE, "rate": _as_number(sample_rate)}}
        )

    if not is_valid_sample_rate(sample_rate):
        logger.warning("[Tracing] Discarding transaction because of invalid sample rate.")
        transaction.sampled = False
        return transaction

    if not sample_rate:
        if callable(sampler):
            reason = "traces_sampler returned 0 or False"
        else:
            reason = "a negative sampling decision was inherited or traces_sample_rate is set to 0"
        logger.info(f"[Tracing] Discarding transaction because {reason}")
        transaction.sampled = False
        return transaction

    # random() is in [0, 1), so strict < never samples in a rate of 0 and always samples in a rate of 1
    transaction.sampled = random.random() < sample_rate

    if not transaction.sampled:
        logger.info(
            "[Tracing] Discarding transaction because it's not included in the random sample "
            f"(sampling rate = {_as_number(sample_rate)})"
        )
        return transaction

    transaction.init_span_recorder(options.max_spans)

    logger.info(f"[Tracing] starting {transaction.op} transaction - {transaction.name}")
    return transaction
