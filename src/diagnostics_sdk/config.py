from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from . import __version__
from .models.leases import MAX_LEASE_DURATION, MIN_LEASE_DURATION, LeaseNamespaces

_ENV_PREFIX = "DIAGNOSTICS_"


def _env(env: Mapping[str, str], name: str) -> str | None:
    raw = env.get(_ENV_PREFIX + name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_float(env: Mapping[str, str], name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = _env(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{_ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def _parse_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
    raw = _env(env, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{_ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class DiagnosticsClientOptions:
    endpoint: str
    timeout_seconds: float = 30.0
    user_agent: str = f"diagnostics-sdk/{__version__}"
    bearer_token: str | None = None
    default_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.endpoint or not self.endpoint.strip():
            raise ValueError("endpoint is required")
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got {self.endpoint!r}")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "DiagnosticsClientOptions":
        env = os.environ if env is None else env
        endpoint = _env(env, "ENDPOINT")
        if endpoint is None:
            raise ValueError(f"{_ENV_PREFIX}ENDPOINT is required")
        user_agent = _env(env, "USER_AGENT")
        return cls(
            endpoint=endpoint,
            timeout_seconds=_parse_float(env, "TIMEOUT_SECONDS", 30.0, minimum=0.001),
            user_agent=user_agent or cls.user_agent,
            bearer_token=_env(env, "BEARER_TOKEN"),
        )


@dataclass(frozen=True)
class EgressSettings:
    """Policy for uploading one artifact under a lease.

    Renewal retries belong here, not in the client: the client sends each
    lease call exactly once.
    """

    lease_namespace: str = LeaseNamespaces.UPLOADS
    lease_duration_seconds: int = 60
    renew_interval_seconds: float = 20.0
    renew_retries: int = 2
    retry_delay_seconds: float = 1.0
    acquire_attempts: int = 5
    acquire_backoff_seconds: float = 2.0
    max_acquire_backoff_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.lease_namespace:
            raise ValueError("lease_namespace is required")
        low, high = int(MIN_LEASE_DURATION.total_seconds()), int(MAX_LEASE_DURATION.total_seconds())
        if not low <= self.lease_duration_seconds <= high:
            raise ValueError(f"lease_duration_seconds must be between {low} and {high}")
        if self.renew_interval_seconds <= 0:
            raise ValueError("renew_interval_seconds must be positive")
        if self.renew_interval_seconds >= self.lease_duration_seconds:
            raise ValueError("renew_interval_seconds must be shorter than lease_duration_seconds")
        if self.acquire_attempts < 1:
            raise ValueError("acquire_attempts must be at least 1")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EgressSettings":
        env = os.environ if env is None else env
        return cls(
            lease_namespace=_env(env, "LEASE_NAMESPACE") or cls.lease_namespace,
            lease_duration_seconds=_parse_int(
                env, "LEASE_DURATION_SECONDS", cls.lease_duration_seconds, minimum=1
            ),
            renew_interval_seconds=_parse_float(env, "RENEW_INTERVAL_SECONDS", cls.renew_interval_seconds),
            renew_retries=_parse_int(env, "RENEW_RETRIES", cls.renew_retries),
            retry_delay_seconds=_parse_float(env, "RETRY_DELAY_SECONDS", cls.retry_delay_seconds),
            acquire_attempts=_parse_int(env, "ACQUIRE_ATTEMPTS", cls.acquire_attempts, minimum=1),
            acquire_backoff_seconds=_parse_float(env, "ACQUIRE_BACKOFF_SECONDS", cls.acquire_backoff_seconds),
            max_acquire_backoff_seconds=_parse_float(
                env, "MAX_ACQUIRE_BACKOFF_SECONDS", cls.max_acquire_backoff_seconds
            ),
        )
