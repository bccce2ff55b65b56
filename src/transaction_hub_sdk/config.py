from __future__ import annotations

import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, TypeVar

from dotenv import load_dotenv

N = TypeVar("N", int, float)

_PREFIX = "TXHUB_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    severity_threshold_percent: int = 10

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()

    @property
    def severity_threshold(self) -> Fraction:
        """Ratio above which a quantity discrepancy counts as HIGH."""
        return Fraction(self.severity_threshold_percent, 100)


def _env(name: str) -> str | None:
    value = os.getenv(_PREFIX + name)
    return value.strip() if value is not None else None


def _bounded(
    name: str,
    default: N,
    parse: Callable[[str], N],
    accept: Callable[[N], bool],
    expectation: str,
) -> N:
    raw = _env(name)
    if raw is None or raw == "":
        value = default
    else:
        try:
            value = parse(raw)
        except ValueError as exc:
            kind = "an integer" if parse is int else "a number"
            raise ConfigError(f"Invalid {_PREFIX}{name}: expected {kind}, got {raw!r}") from exc
    if not accept(value):
        raise ConfigError(f"Invalid {_PREFIX}{name}: expected {expectation}, got {value}")
    return value


def _base_url(env_name: str) -> str:
    url = _env(f"API_BASE_URL_{env_name.upper()}") or _env("API_BASE_URL") or ""
    if not url:
        raise ConfigError(f"Missing required config values: {_PREFIX}API_BASE_URL")
    return url.rstrip("/")


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = _env("ENV") or "dev"
    api_base_url = _base_url(env_name)

    positive = (lambda value: value > 0, "> 0")
    timeout = _bounded("TIMEOUT_SECONDS", 10.0, float, *positive)
    connect_timeout = _bounded("CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0), float, *positive)
    read_timeout = _bounded("READ_TIMEOUT_SECONDS", max(timeout, connect_timeout), float, *positive)

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url,
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=_bounded("RETRIES", 3, int, lambda value: value >= 0, ">= 0"),
        retry_backoff_seconds=_bounded("RETRY_BACKOFF_SECONDS", 0.3, float, lambda value: value >= 0, ">= 0"),
        max_connections=_bounded("MAX_CONNECTIONS", 10, int, lambda value: value >= 1, ">= 1"),
        verify_ssl=(_env("VERIFY_SSL") or "true").lower() in {"1", "true", "yes", "on"},
        severity_threshold_percent=_bounded(
            "SEVERITY_THRESHOLD_PERCENT",
            10,
            int,
            lambda value: 0 <= value <= 100,
            "0..100",
        ),
    )
