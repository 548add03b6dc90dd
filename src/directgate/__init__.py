from __future__ import annotations

from ._enums import Action, GateState, Operator
from ._errors import DirectGateError, DirectGateMisconfiguration
from .challenge import Challenge, generate_challenge, verify_answer
from .config import GateConfig
from .context import RequestContext, coerce_request_context
from .decision import GateDecision
from .gate import DirectAccessGate, direct_access_gate
from .render import render_challenge_page
from .store import PassCookie, SessionBridge
from .trust import ClientOrigin, OriginCache, TrustResolver

__all__ = [
    "Action",
    "Challenge",
    "ClientOrigin",
    "coerce_request_context",
    "direct_access_gate",
    "DirectAccessGate",
    "DirectGateError",
    "DirectGateMisconfiguration",
    "GateConfig",
    "GateDecision",
    "GateState",
    "generate_challenge",
    "Operator",
    "OriginCache",
    "PassCookie",
    "render_challenge_page",
    "RequestContext",
    "SessionBridge",
    "TrustResolver",
    "verify_answer",
]
