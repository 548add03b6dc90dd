"""Shared test utilities and helper functions.

This module provides common utilities used across all test files to reduce
duplication and improve test readability.
"""

from __future__ import annotations

import re
import socket
from typing import Callable, Dict, Optional

from directgate.context import RequestContext

UNRESOLVED_IP = "203.0.113.9"
CRAWLER_IP = "66.249.66.1"
CRAWLER_HOST = "rate-limited-proxy-66-249-66-1.google.com"
OTHER_IP = "198.51.100.7"
OTHER_HOST = "host.notallowedexample.com"

_QUESTION_RE = re.compile(r"What is (\d+) (\S) (\d+)\?")


def make_resolver(
    mapping: Optional[Dict[str, str]] = None,
) -> Callable[[str], tuple]:
    """Create a fake ``socket.gethostbyaddr``.

    Args:
        mapping: IP -> hostname. Unknown IPs raise ``socket.herror``.

    Returns:
        A resolver callable with a ``calls`` list recording every lookup.
    """
    table = dict(mapping or {})
    calls: list[str] = []

    def resolve(ip: str) -> tuple:
        calls.append(ip)
        host = table.get(ip)
        if host is None:
            raise socket.herror(1, "Unknown host")
        return host, [], [ip]

    resolve.calls = calls  # type: ignore[attr-defined]
    return resolve


def make_context(
    *,
    ip: str = UNRESOLVED_IP,
    method: str = "GET",
    path: str = "/",
    query: str = "",
    headers: Optional[Dict[str, str]] = None,
    cookies: Optional[Dict[str, str]] = None,
    form: Optional[Dict[str, str]] = None,
) -> RequestContext:
    """Create a ``RequestContext`` for gate tests.

    Header names are lower-cased the way ``coerce_request_context`` does.
    """
    return RequestContext(
        ip=ip,
        method=method,
        path=path,
        query=query,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        cookies=dict(cookies or {}),
        form=dict(form or {}),
    )


def solve(question: str) -> int:
    """Compute the answer to a rendered question such as ``"3 × 5"``."""
    a, op, b = question.split()
    x, y = int(a), int(b)
    if op == "+":
        return x + y
    if op == "-":
        return x - y
    if op == "×":
        return x * y
    raise AssertionError(f"unexpected operator in question: {question!r}")


def solve_page(body: str) -> int:
    """Find the question in a rendered challenge page and answer it."""
    m = _QUESTION_RE.search(body)
    assert m is not None, "no challenge question in page"
    return solve(" ".join(m.groups()))
