"""Tracing options model and loading."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tracegate.errors import ConfigError


class TracingOptions(BaseModel):
    """
    Options consumed by the sampling engine and the header codec.

    ``traces_sample_rate`` is deliberately untyped: a bad rate is not a load
    error, it is resolved to "do not sample" when a transaction is started.
    Whether tracing is enabled depends on which of ``traces_sample_rate`` and
    ``traces_sampler`` were provided at all, see ``model_fields_set``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    traces_sample_rate: Any = None
    traces_sampler: Optional[Callable[[Dict[str, Any]], Any]] = None
    experiments: Dict[str, Any] = Field(default_factory=dict)
    environment: Optional[str] = None
    release: Optional[str] = None
    public_key: Optional[str] = None
    debug: bool = False

    @property
    def max_spans(self) -> Optional[int]:
        return self.experiments.get("max_spans")


def load_options(options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> TracingOptions:
    """
    Build validated TracingOptions from a mapping and keyword overrides.

    Keyword overrides win over keys in ``options``.

    Raises:
        ConfigError: unknown keys or values of the wrong type
    """
    if isinstance(options, TracingOptions):
        if not overrides:
            return options
        options = {k: getattr(options, k) for k in options.model_fields_set}

    merged: Dict[str, Any] = dict(options or {})
    merged.update(overrides)

    try:
        return TracingOptions.model_validate(merged)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError("Invalid tracing options", details={"errors": errors}) from e
