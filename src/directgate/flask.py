"""Flask integration.

Registers the gate as the first ``before_request`` hook so it runs ahead of
every view, and an ``after_request`` hook that attaches the pass cookie.

Example::

    from flask import Flask
    from directgate import direct_access_gate
    from directgate.flask import DirectAccessFlask

    app = Flask(__name__)
    app.secret_key = os.environ["SECRET_KEY"]  # challenges live in the session

    DirectAccessFlask(direct_access_gate(cookie_domain="example.com"), app)
"""

from __future__ import annotations

from flask import Flask, Response, g, make_response, request, session
from flask.sessions import NullSession

from .decision import GateDecision
from .gate import DirectAccessGate, direct_access_gate

_G_KEY = "_directgate_decision"


class DirectAccessFlask:
    def __init__(self, gate: DirectAccessGate | None = None, app: Flask | None = None) -> None:
        self.gate = gate or direct_access_gate()
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        # Insert first so the gate runs before any other hook.
        app.before_request_funcs.setdefault(None, []).insert(0, self._before_request)
        app.after_request(self._after_request)
        app.extensions["directgate"] = self

    def _before_request(self) -> Response | None:
        decision = self.gate.check(request, session=_current_session)
        setattr(g, _G_KEY, decision)
        if not decision.is_halted():
            return None
        resp = make_response(decision.body or "", decision.status_code)
        for k, v in decision.headers:
            resp.headers[k] = v
        return resp

    def _after_request(self, response: Response) -> Response:
        decision: GateDecision | None = g.pop(_G_KEY, None)
        if decision is None:
            return response
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


def current_decision() -> GateDecision | None:
    """The gate's decision for the current request, if the gate ran."""
    return g.get(_G_KEY)


def _current_session():
    # Without a secret key Flask hands out a NullSession that refuses writes.
    if isinstance(session, NullSession):
        return None
    return session
