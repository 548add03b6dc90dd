"""Framework-agnostic request context.

The gate never reads ambient request state. Every request is first coerced
into a ``RequestContext`` carrying exactly what the decision tree needs:
headers, cookies, form fields, method and the socket peer address.

``coerce_request_context`` accepts:

- a ``RequestContext`` (returned unchanged)
- a Flask/Werkzeug ``Request``
- a Django ``HttpRequest``
- an ASGI HTTP scope ``dict`` (no body: pass ``form=`` explicitly)
- a plain mapping with ``ip``/``method``/``headers``/``cookies``/``form`` keys
"""

from __future__ import annotations

from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Any, Iterable, Mapping
from urllib.parse import parse_qsl

from ._logging import logger


@dataclass(frozen=True, slots=True)
class RequestContext:
    ip: str | None = None
    """Socket peer address (``REMOTE_ADDR``)."""

    method: str = "GET"
    path: str = "/"
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    """Header names are lower-cased."""

    cookies: Mapping[str, str] = field(default_factory=dict)
    form: Mapping[str, str] = field(default_factory=dict)

    @property
    def referer(self) -> str | None:
        return self.headers.get("referer")

    @property
    def url(self) -> str:
        """Path plus query string, suitable for a same-origin redirect."""
        return f"{self.path}?{self.query}" if self.query else self.path

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


def _normalize_headers(headers: Any) -> dict[str, str]:
    out: dict[str, str] = {}
    if not headers:
        return out
    items: Iterable[Any] = headers.items() if hasattr(headers, "items") else headers
    for k, v in items:
        if isinstance(k, bytes):
            k = k.decode("latin-1")
        if isinstance(v, bytes):
            v = v.decode("latin-1")
        if isinstance(v, (list, tuple)):
            v = ", ".join(str(x) for x in v)
        key = str(k).lower()
        # Repeated headers are joined the way HTTP folds them.
        out[key] = f"{out[key]}, {v}" if key in out else str(v)
    return out


def _parse_cookie_header(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    jar = SimpleCookie()
    try:
        jar.load(raw)
    except CookieError as e:
        logger.debug(
            "cookie header parse error: error=%s",
            str(e),
            extra={"event": "directgate_cookie_parse_error", "error": str(e)},
        )
        return {}
    return {k: m.value for k, m in jar.items()}


def _first_values(data: Any) -> dict[str, str]:
    """Flatten a multi-dict (form, query) keeping the first value per key."""
    if not data:
        return {}
    if hasattr(data, "getlist"):
        return {str(k): str(data.get(k)) for k in data.keys()}
    out: dict[str, str] = {}
    for k, v in data.items():
        if isinstance(v, (list, tuple)):
            if not v:
                continue
            v = v[0]
        out[str(k)] = str(v)
    return out


def _from_asgi_scope(scope: Mapping[str, Any], form: Mapping[str, str] | None):
    headers = _normalize_headers(scope.get("headers") or [])
    client = scope.get("client")
    query = scope.get("query_string") or b""
    if isinstance(query, bytes):
        query = query.decode("latin-1")
    return RequestContext(
        ip=client[0] if client else None,
        method=str(scope.get("method") or "GET").upper(),
        path=scope.get("path") or "/",
        query=query,
        headers=headers,
        cookies=_parse_cookie_header(headers.get("cookie")),
        form=_first_values(form),
    )


def _from_django(request: Any) -> RequestContext:
    meta = request.META
    headers: dict[str, str] = {}
    for k, v in meta.items():
        if k.startswith("HTTP_"):
            headers[k[5:].replace("_", "-").lower()] = str(v)
        elif k in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            headers[k.replace("_", "-").lower()] = str(v)
    method = str(request.method or "GET").upper()
    return RequestContext(
        ip=meta.get("REMOTE_ADDR"),
        method=method,
        path=request.path,
        query=meta.get("QUERY_STRING", ""),
        headers=headers,
        cookies=dict(request.COOKIES),
        form=_first_values(request.POST) if method == "POST" else {},
    )


def _from_werkzeug(request: Any) -> RequestContext:
    query = request.query_string
    if isinstance(query, bytes):
        query = query.decode("latin-1")
    method = str(request.method or "GET").upper()
    return RequestContext(
        ip=request.remote_addr,
        method=method,
        path=request.path,
        query=query,
        headers=_normalize_headers(request.headers),
        cookies=_first_values(request.cookies),
        form=_first_values(request.form) if method == "POST" else {},
    )


def coerce_request_context(
    request: Any, *, form: Mapping[str, str] | None = None
) -> RequestContext:
    """Build a ``RequestContext`` from a supported request object.

    ``form`` is only used for ASGI scopes, whose body is not available
    synchronously.
    """
    if isinstance(request, RequestContext):
        return request

    if isinstance(request, Mapping):
        if request.get("type") == "http" and "headers" in request:
            return _from_asgi_scope(request, form)
        headers = _normalize_headers(request.get("headers"))
        cookies = request.get("cookies")
        if cookies is None:
            cookies = _parse_cookie_header(headers.get("cookie"))
        return RequestContext(
            ip=request.get("ip"),
            method=str(request.get("method") or "GET").upper(),
            path=request.get("path") or "/",
            query=request.get("query") or "",
            headers=headers,
            cookies=dict(cookies),
            form=_first_values(request.get("form") or form),
        )

    if hasattr(request, "META") and hasattr(request, "COOKIES"):
        return _from_django(request)

    if hasattr(request, "remote_addr") and hasattr(request, "headers"):
        return _from_werkzeug(request)

    raise TypeError(
        f"Unsupported request type: {type(request).__name__}. Pass a Flask, "
        "Django or ASGI request, or build a RequestContext."
    )


def parse_form_body(body: bytes | str) -> dict[str, str]:
    """Decode an ``application/x-www-form-urlencoded`` body."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    out: dict[str, str] = {}
    for k, v in parse_qsl(body, keep_blank_values=True):
        out.setdefault(k, v)
    return out
