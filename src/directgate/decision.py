"""Gate decisions.

``GateDecision`` is the only thing the gate returns. It tells the HTTP layer
whether to let the request through (``Action.PROCEED``) or to stop and send
the decision's own response (``Action.HALT``), plus any cookies to set on
whatever response eventually goes out.

Example::

    decision = gate.check(request, session=session)
    if decision.is_halted():
        return Response(decision.body, decision.status_code, decision.headers)
    # ... run the route, then:
    for cookie in decision.cookies:
        response.headers.add("Set-Cookie", cookie.to_header())
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ._enums import Action, GateState
from .store import PassCookie
from .trust import ClientOrigin

_CHALLENGE_STATES = (GateState.CHALLENGE_ISSUED, GateState.CHALLENGE_FAILED)


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Terminal result of running the gate on one request."""

    state: GateState
    action: Action = Action.PROCEED
    status_code: int = 200
    """Status for the halt response. Meaningless when proceeding."""

    body: str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[PassCookie, ...] = ()
    question: str | None = None
    """Challenge question shown in the page, when one was issued."""

    error: str | None = None
    origin: ClientOrigin | None = None
    """Resolved origin, when the direct-access branch ran."""

    def is_halted(self) -> bool:
        """True when the pipeline must stop and send this decision's response."""
        return self.action is Action.HALT

    def is_proceed(self) -> bool:
        return self.action is Action.PROCEED

    def is_challenged(self) -> bool:
        """True when a challenge page (fresh or after a wrong answer) was rendered."""
        return self.state in _CHALLENGE_STATES

    def is_passed(self) -> bool:
        """True for every state that lets the client through."""
        return not self.is_challenged()

    def header(self, name: str) -> str | None:
        n = name.lower()
        for k, v in self.headers:
            if k.lower() == n:
                return v
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the decision (without the page body) for logging."""
        return {
            "state": self.state.value,
            "action": self.action.value,
            "status_code": self.status_code,
            "question": self.question,
            "error": self.error,
            "cookies": [c.to_dict() for c in self.cookies],
            "origin": (
                {"ip": self.origin.ip, "domain": self.origin.domain}
                if self.origin
                else None
            ),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def __repr__(self) -> str:
        return f"GateDecision(state={self.state.value}, action={self.action.value})"
