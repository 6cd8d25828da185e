from __future__ import annotations

import logging
import os

# -------------------- Configuration --------------------

ENV_DEBUG = "SNIPNORM_DEBUG"
ENV_NO_REGEX = "SNIPNORM_NO_REGEX"
ENV_DEBUG_PY_TRACE = "SNIPNORM_DEBUG_PY_TRACE"

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str) -> bool:
    """True if environment variable `name` is set to a truthy value."""
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def debug_enabled() -> bool:
    return env_flag(ENV_DEBUG)


def regex_disabled() -> bool:
    """Simulate an environment without a regex engine."""
    return env_flag(ENV_NO_REGEX)


def debug_py_trace_enabled() -> bool:
    return env_flag(ENV_DEBUG_PY_TRACE)


# -------------------- Logging setup --------------------

_LOG = logging.getLogger("snipnorm")


def setup_logging() -> None:
    """Attach one stderr handler to the package logger (idempotent)."""
    if getattr(setup_logging, "_inited", False):
        return
    setup_logging._inited = True  # type: ignore[attr-defined]
    level = logging.DEBUG if debug_enabled() else logging.INFO
    _LOG.setLevel(level)
    if not _LOG.handlers:
        h = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        h.setFormatter(fmt)
        _LOG.addHandler(h)
