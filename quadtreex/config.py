from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

_SUPPORTED_STUB_POLICIES = {"raise", "skip"}
_SUPPORTED_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def normalise_stub_policy(value: str | None) -> str:
    if value is None:
        return "raise"
    value = value.strip().lower()
    if value not in _SUPPORTED_STUB_POLICIES:
        raise ValueError(
            f"Unsupported stub policy '{value}'. Expected one of {_SUPPORTED_STUB_POLICIES}."
        )
    return value


def _normalise_log_level(value: str | None) -> str:
    if value is None or value.strip() == "":
        return "INFO"
    level = value.strip().upper()
    if level not in _SUPPORTED_LOG_LEVELS:
        raise ValueError(f"Unsupported log level '{value}'. Expected one of {_SUPPORTED_LOG_LEVELS}.")
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str
    stub_policy: str
    validate_on_build: bool

    @property
    def skips_stubs(self) -> bool:
        return self.stub_policy == "skip"


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("quadtreex")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    log_level = _normalise_log_level(os.getenv("QUADTREEX_LOG_LEVEL"))
    stub_policy = normalise_stub_policy(os.getenv("QUADTREEX_STUB_POLICY"))
    validate_on_build = _bool_from_env(os.getenv("QUADTREEX_VALIDATE"), default=False)

    config = RuntimeConfig(
        log_level=log_level,
        stub_policy=stub_policy,
        validate_on_build=validate_on_build,
    )
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()
