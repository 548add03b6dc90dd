"""Starlette / FastAPI integration.

``DirectAccessMiddleware`` must sit *inside* Starlette's ``SessionMiddleware``
so challenge answers can be stored. With ``add_middleware`` the last call is
the outermost layer, so add the gate first:

Example::

    from fastapi import FastAPI
    from starlette.middleware.sessions import SessionMiddleware
    from directgate import direct_access_gate
    from directgate.starlette import DirectAccessMiddleware

    app = FastAPI()
    app.add_middleware(DirectAccessMiddleware, gate=direct_access_gate())
    app.add_middleware(SessionMiddleware, secret_key=os.environ["SECRET_KEY"])

The gate itself is synchronous (reverse DNS blocks), so it runs in the
threadpool.
"""

from __future__ import annotations

from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp
from typing_extensions import override

from .context import coerce_request_context, parse_form_body
from .gate import DirectAccessGate, direct_access_gate

_FORM_TYPE = "application/x-www-form-urlencoded"


class DirectAccessMiddleware(BaseHTTPMiddleware):
    def __init__(
        self, app: ASGIApp, gate: DirectAccessGate | None = None, **options: Any
    ) -> None:
        super().__init__(app)
        self.gate = gate or direct_access_gate(**options)

    @override
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        form = None
        content_type = request.headers.get("content-type", "").lower()
        if request.method == "POST" and content_type.startswith(_FORM_TYPE):
            form = parse_form_body(await request.body())
        ctx = coerce_request_context(request.scope, form=form)
        session = (lambda: request.session) if "session" in request.scope else None

        decision = await run_in_threadpool(self.gate.check, ctx, session=session)
        request.state.directgate = decision

        if decision.is_halted():
            response: Response = Response(
                decision.body or "",
                status_code=decision.status_code,
                headers=dict(decision.headers),
            )
        else:
            response = await call_next(request)

        for c in decision.cookies:
            response.set_cookie(
                c.name,
                c.value,
                max_age=c.max_age,
                path=c.path,
                domain=c.domain,
                secure=c.secure,
                httponly=c.httponly,
                samesite=c.samesite,
            )
        return response
