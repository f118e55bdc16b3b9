"""Configuration loader with ENV:VAR_NAME resolution."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .http import DEFAULT_TIMEOUT
from .service import DEFAULT_ERROR_MESSAGE, DEFAULT_RETRIES, DEFAULT_RETRY_DELAY_MS, RetryOptions

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


def _resolve(value: Any) -> Any:
    """Recursively resolve ENV:VAR_NAME references."""
    if isinstance(value, str) and value.startswith("ENV:"):
        var = value[4:]
        resolved = os.environ.get(var)
        if resolved is None:
            logger.debug("Environment variable %s not set (value stays None)", var)
        return resolved
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(v) for v in value]
    return value


@dataclass
class ServiceConfig:
    base_url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class RetryConfig:
    retries: int = DEFAULT_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    error_message: str | None = None  # None: the operation picks its own message


@dataclass
class RuntimeConfig:
    log_level: str = "INFO"


@dataclass
class AppConfig:
    service: ServiceConfig = field(default_factory=ServiceConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    params: dict[str, Any] = field(default_factory=dict)

    def retry_options(self) -> RetryOptions:
        return RetryOptions(
            retries=self.retry.retries,
            retry_delay=self.retry.retry_delay_ms,
            error_message=self.retry.error_message or DEFAULT_ERROR_MESSAGE,
        )


def _non_negative_int(section: dict, key: str, default: int) -> int:
    raw = section.get(key, default)
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise ConfigError(f"{key} must be a whole number, got {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{key} must be >= 0, got {value}")
    return value


def load_config(path: str | Path) -> AppConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")

    raw = _resolve(raw)

    cfg = AppConfig()

    svc = raw.get("service") or {}
    try:
        timeout = float(svc.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"timeout must be a number, got {svc.get('timeout')!r}") from exc
    cfg.service = ServiceConfig(
        base_url=svc.get("base_url") or "",
        headers={str(k): str(v) for k, v in (svc.get("headers") or {}).items()},
        timeout=timeout,
    )

    rt = raw.get("retry") or {}
    cfg.retry = RetryConfig(
        retries=_non_negative_int(rt, "retries", DEFAULT_RETRIES),
        retry_delay_ms=_non_negative_int(rt, "retry_delay_ms", DEFAULT_RETRY_DELAY_MS),
        error_message=rt.get("error_message"),
    )

    run = raw.get("runtime") or {}
    cfg.runtime = RuntimeConfig(log_level=run.get("log_level", "INFO"))

    cfg.params = {str(k): v for k, v in (raw.get("params") or {}).items() if v is not None}

    logging.getLogger().setLevel(getattr(logging, cfg.runtime.log_level.upper(), logging.INFO))
    return cfg
