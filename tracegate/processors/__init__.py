"""Sampling decisions."""

from tracegate.processors.sampler import (
    SamplingContext,
    SamplingMethod,
    has_tracing_enabled,
    is_valid_sample_rate,
    sample,
)

__all__ = [
    "SamplingContext",
    "SamplingMethod",
    "has_tracing_enabled",
    "is_valid_sample_rate",
    "sample",
]
