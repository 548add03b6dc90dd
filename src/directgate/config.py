"""Gate configuration.

``GateConfig`` can be built directly, or from ``DIRECTGATE_*`` environment
variables with ``GateConfig.from_env()``:

- ``DIRECTGATE_COOKIE_NAME``, ``DIRECTGATE_COOKIE_DOMAIN``,
  ``DIRECTGATE_COOKIE_MAX_AGE``, ``DIRECTGATE_COOKIE_SECURE``
- ``DIRECTGATE_ALLOWED_DOMAINS`` (comma-separated)
- ``DIRECTGATE_OPERATORS`` (comma-separated, e.g. ``"+,-,*"``)
- ``DIRECTGATE_REDIRECT_ON_SUCCESS``
- ``DIRECTGATE_DNS_TIMEOUT_MS``, ``DIRECTGATE_DNS_CACHE_TTL``
- ``DIRECTGATE_EXEMPT_PATHS`` (comma-separated path prefixes)
- ``DIRECTGATE_ENABLED``
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields
from typing import Any, Iterable

from ._enums import Operator, _coerce_operator
from ._errors import DirectGateMisconfiguration
from .trust import DEFAULT_ALLOWED_DOMAINS

DEFAULT_COOKIE_NAME = "client_uid_form_cf_main"
DEFAULT_COOKIE_MAX_AGE = 43200
DEFAULT_FIELD = "captcha_answer"
DEFAULT_ERROR_MESSAGE = "Incorrect answer. Please try again."

_SAMESITE = ("Lax", "Strict", "None")
_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    v = raw.strip().lower()
    if v in _TRUTHY:
        return True
    if v in _FALSY:
        return False
    raise DirectGateMisconfiguration(f"{name} must be a boolean, got {raw!r}.")


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        raise DirectGateMisconfiguration(f"{name} must be an integer, got {raw!r}.") from None


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        v = float(raw.strip())
    except ValueError:
        v = math.nan
    if not math.isfinite(v):
        raise DirectGateMisconfiguration(f"{name} must be a number, got {raw!r}.")
    return v


def _env_list(name: str) -> tuple[str, ...] | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True, slots=True)
class GateConfig:
    """All recognized gate options. Defaults mirror a typical deployment."""

    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie_domain: str | None = None
    """Base domain for the pass cookie (e.g. ``"example.com"`` to cover all
    subdomains). ``None`` sets a host-only cookie."""

    cookie_max_age: int = DEFAULT_COOKIE_MAX_AGE
    cookie_secure: bool = True
    cookie_httponly: bool = True
    cookie_samesite: str = "Lax"

    allowed_domains: frozenset[str] = DEFAULT_ALLOWED_DOMAINS
    operators: tuple[Operator, ...] = (Operator.ADD, Operator.SUBTRACT)

    answer_field: str = DEFAULT_FIELD
    session_key: str = DEFAULT_FIELD
    error_message: str = DEFAULT_ERROR_MESSAGE
    redirect_on_success: bool = False
    challenge_status_code: int = 403

    dns_timeout_ms: int | None = 1000
    dns_cache_ttl: float = 300.0

    exempt_paths: tuple[str, ...] = ()
    enabled: bool = True

    page_title: str = "Checking that you are not a robot"
    page_prompt: str = "Please solve the problem below to continue."
    page_lang: str = "en"

    def __post_init__(self):
        if not self.cookie_name:
            raise DirectGateMisconfiguration("cookie_name is required.")
        if self.cookie_max_age <= 0:
            raise DirectGateMisconfiguration("cookie_max_age must be positive.")
        if self.cookie_samesite not in _SAMESITE:
            raise DirectGateMisconfiguration(
                f"cookie_samesite must be one of {_SAMESITE}, got {self.cookie_samesite!r}."
            )
        if self.cookie_samesite == "None" and not self.cookie_secure:
            raise DirectGateMisconfiguration(
                "cookie_samesite='None' requires cookie_secure=True."
            )
        if not self.answer_field or not self.session_key:
            raise DirectGateMisconfiguration("answer_field and session_key are required.")
        if self.dns_timeout_ms is not None and self.dns_timeout_ms <= 0:
            raise DirectGateMisconfiguration("dns_timeout_ms must be positive or None.")
        if not (100 <= self.challenge_status_code <= 599):
            raise DirectGateMisconfiguration("challenge_status_code must be an HTTP status.")
        # Normalize collection fields; frozen dataclasses need object.__setattr__.
        object.__setattr__(
            self, "allowed_domains", frozenset(str(d).strip().lower() for d in self.allowed_domains if str(d).strip())
        )
        try:
            ops = tuple(dict.fromkeys(_coerce_operator(o) for o in self.operators))
        except ValueError as e:
            raise DirectGateMisconfiguration(str(e)) from None
        if not ops:
            raise DirectGateMisconfiguration("At least one challenge operator is required.")
        object.__setattr__(self, "operators", ops)
        object.__setattr__(self, "exempt_paths", _normalize_paths(self.exempt_paths))

    @classmethod
    def from_env(cls, **overrides: Any) -> "GateConfig":
        """Build a config from ``DIRECTGATE_*`` variables; ``overrides`` win."""
        values: dict[str, Any] = {}
        name = os.getenv("DIRECTGATE_COOKIE_NAME")
        if name:
            values["cookie_name"] = name
        domain = os.getenv("DIRECTGATE_COOKIE_DOMAIN")
        if domain:
            values["cookie_domain"] = domain
        for key, env in (
            ("cookie_max_age", "DIRECTGATE_COOKIE_MAX_AGE"),
            ("dns_timeout_ms", "DIRECTGATE_DNS_TIMEOUT_MS"),
        ):
            v = _env_int(env)
            if v is not None:
                values[key] = v
        ttl = _env_float("DIRECTGATE_DNS_CACHE_TTL")
        if ttl is not None:
            values["dns_cache_ttl"] = ttl
        for key, env in (
            ("cookie_secure", "DIRECTGATE_COOKIE_SECURE"),
            ("redirect_on_success", "DIRECTGATE_REDIRECT_ON_SUCCESS"),
            ("enabled", "DIRECTGATE_ENABLED"),
        ):
            b = _env_bool(env)
            if b is not None:
                values[key] = b
        for key, env in (
            ("allowed_domains", "DIRECTGATE_ALLOWED_DOMAINS"),
            ("operators", "DIRECTGATE_OPERATORS"),
            ("exempt_paths", "DIRECTGATE_EXEMPT_PATHS"),
        ):
            lst = _env_list(env)
            if lst is not None:
                values[key] = lst
        values.update(overrides)
        return cls(**values)

    def replace(self, **changes: Any) -> "GateConfig":
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise DirectGateMisconfiguration(
                f"Unknown gate option(s): {', '.join(sorted(unknown))}."
            )
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return GateConfig(**values)

    def is_exempt(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.exempt_paths)


def _normalize_paths(paths: Iterable[str]) -> tuple[str, ...]:
    if isinstance(paths, str):
        paths = (paths,)
    out: list[str] = []
    for p in paths:
        p = str(p).strip()
        if not p:
            continue
        if not p.startswith("/"):
            p = "/" + p
        out.append(p)
    return tuple(out)
