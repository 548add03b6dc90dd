"""Origin trust checks: direct-access detection and reverse-DNS allow-listing.

Reverse DNS is slow and unreliable. Every failure mode (no PTR record,
resolver error, timeout, garbage input such as a comma-separated
``X-Forwarded-For`` list) resolves to ``None`` and is treated as an untrusted
origin, never as an error.

Client-supplied IP headers are honored here because the result is only used
to look up a hostname; it never authorizes anything on its own.
"""

from __future__ import annotations

import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ._logging import logger
from .context import RequestContext

DEFAULT_ALLOWED_DOMAINS: frozenset[str] = frozenset({"google.com", "yandex.com"})

# Header precedence when picking the address to reverse resolve.
CLIENT_IP_HEADERS: tuple[str, ...] = ("client-ip", "x-forwarded-for")

Resolver = Callable[[str], tuple]
"""Same shape as ``socket.gethostbyaddr``: ``(hostname, aliases, addresses)``."""

_pool_lock = threading.Lock()
_pool: ThreadPoolExecutor | None = None


def _dns_pool() -> ThreadPoolExecutor:
    global _pool
    with _pool_lock:
        if _pool is None:
            _pool = ThreadPoolExecutor(max_workers=8, thread_name_prefix="directgate-dns")
        return _pool


@dataclass(frozen=True, slots=True)
class ClientOrigin:
    """Where a request claims to come from. Derived per request, never stored."""

    ip: str
    domain: str | None = None

    @property
    def resolved(self) -> bool:
        return bool(self.domain)


def is_direct_access(referer: str | None) -> bool:
    """True when the request carries no (or an empty) ``Referer`` header."""
    return not referer


def resolve_origin_ip(ctx: RequestContext) -> str:
    """Pick the client address: ``Client-IP``, then ``X-Forwarded-For``, then peer.

    ``X-Forwarded-For`` is returned verbatim; it may hold several
    comma-separated addresses.
    """
    for name in CLIENT_IP_HEADERS:
        v = ctx.header(name)
        if v:
            return v
    return ctx.ip or ""


def _resolve(
    ip: str, timeout_ms: int | None, resolver: Resolver | None
) -> tuple[str | None, bool]:
    """Return ``(hostname, timed_out)``."""
    if not ip:
        return None, False
    if resolver is None:
        resolver = socket.gethostbyaddr
    try:
        if timeout_ms is None:
            host = resolver(ip)[0]
        else:
            fut = _dns_pool().submit(resolver, ip)
            try:
                host = fut.result(timeout=timeout_ms / 1000.0)[0]
            except FutureTimeoutError:
                # Drop the lookup if no worker has picked it up yet.
                fut.cancel()
                raise
    except FutureTimeoutError:
        logger.debug(
            "reverse dns timeout: ip=%s timeout_ms=%s",
            ip,
            timeout_ms,
            extra={"event": "directgate_dns_timeout", "ip": ip, "timeout_ms": timeout_ms},
        )
        return None, True
    except (OSError, UnicodeError, ValueError) as e:
        logger.debug(
            "reverse dns error: ip=%s error=%s",
            ip,
            str(e),
            extra={"event": "directgate_dns_error", "ip": ip, "error": str(e)},
        )
        return None, False
    if not host or host == ip:
        return None, False
    return host, False


def reverse_resolve(
    ip: str,
    *,
    timeout_ms: int | None = None,
    resolver: Resolver | None = None,
) -> str | None:
    """Reverse-resolve ``ip`` to a hostname, or ``None``.

    ``None`` is returned when the lookup fails, times out, or the resolver
    just echoes the address back. With ``timeout_ms`` the lookup runs on a
    shared worker pool so a hung resolver cannot stall the request past the
    deadline; a lookup still waiting in the pool queue at the deadline is
    cancelled.
    """
    return _resolve(ip, timeout_ms, resolver)[0]


def is_allowed_domain(domain: str | None, allowed_domains: Iterable[str]) -> bool:
    """True when ``domain`` contains any allow-list entry as a substring.

    Matching is plain containment, so ``notgoogle.com.evil.net`` matches
    ``google.com``.
    """
    if not domain:
        return False
    return any(entry and entry in domain for entry in allowed_domains)


class OriginCache:
    """Small thread-safe TTL cache of reverse-DNS results keyed by IP.

    Negative results (``None``) are cached too so an unresolvable bot does
    not cost one DNS round trip per request.
    """

    def __init__(self, max_entries: int = 4096) -> None:
        self._store: dict[str, tuple[float, str | None]] = {}
        self._lock = threading.Lock()
        self._max_entries = max_entries

    def get(self, ip: str) -> tuple[bool, str | None]:
        """Return ``(hit, domain)``."""
        now = time.monotonic()
        with self._lock:
            entry = self._store.get(ip)
            if entry is None:
                return False, None
            expires_at, domain = entry
            if expires_at <= now:
                self._store.pop(ip, None)
                return False, None
            return True, domain

    def set(self, ip: str, domain: str | None, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            if len(self._store) >= self._max_entries and ip not in self._store:
                self._evict()
            self._store[ip] = (time.monotonic() + ttl_seconds, domain)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _evict(self) -> None:
        now = time.monotonic()
        expired = [k for k, (exp, _) in self._store.items() if exp <= now]
        for k in expired:
            del self._store[k]
        if len(self._store) >= self._max_entries:
            # Oldest insertion first.
            del self._store[next(iter(self._store))]


@dataclass(slots=True)
class TrustResolver:
    """Decides whether a direct-access request is trusted by its origin."""

    allowed_domains: frozenset[str] = DEFAULT_ALLOWED_DOMAINS
    timeout_ms: int | None = 1000
    cache_ttl: float = 300.0
    resolver: Resolver | None = None
    """Defaults to ``socket.gethostbyaddr``."""

    cache: OriginCache = field(default_factory=OriginCache)

    def lookup(self, ip: str) -> str | None:
        hit, domain = self.cache.get(ip) if ip else (False, None)
        if hit:
            return domain
        domain, timed_out = _resolve(ip, self.timeout_ms, self.resolver)
        # Timeouts are not cached.
        if ip and not timed_out:
            self.cache.set(ip, domain, self.cache_ttl)
        return domain

    def origin(self, ctx: RequestContext) -> ClientOrigin:
        ip = resolve_origin_ip(ctx)
        return ClientOrigin(ip=ip, domain=self.lookup(ip))

    def is_trusted(self, origin: ClientOrigin) -> bool:
        return is_allowed_domain(origin.domain, self.allowed_domains)
