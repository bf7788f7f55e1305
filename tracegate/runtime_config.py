"""Runtime configuration state management."""

# Global runtime configuration state
_config = {
    "debug": False,
    "idle_timeout_ms": 1000,
    "max_spans": 1000,
}


def set_debug(value: bool) -> None:
    _config["debug"] = value


def get_debug() -> bool:
    return _config["debug"]


def set_idle_timeout_ms(value: int) -> None:
    _config["idle_timeout_ms"] = value


def get_idle_timeout_ms() -> int:
    return _config["idle_timeout_ms"]


def set_max_spans(value: int) -> None:
    _config["max_spans"] = value


def get_max_spans() -> int:
    return _config["max_spans"]
