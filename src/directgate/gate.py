"""Direct-access gate.

``DirectAccessGate.check()`` runs once per request, before routing, and
returns a ``GateDecision``:

1. A well-formed pass cookie lets the request through untouched.
2. Otherwise the session is started (lazily, only now).
3. A request without a ``Referer`` is reverse-resolved; allow-listed origins
   (search-engine crawlers by default) are trusted, anything else gets a
   fresh arithmetic challenge and the request is halted.
4. A POST carrying the answer field is verified against the answer stored in
   the session. A correct answer sets the pass cookie; a wrong one renders a
   new challenge with an error.

Use ``direct_access_gate()`` to build one.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any

from ._enums import Action, GateState
from ._errors import DirectGateMisconfiguration
from ._logging import logger
from .challenge import generate_challenge, verify_answer
from .config import GateConfig
from .context import RequestContext, coerce_request_context
from .decision import GateDecision
from .render import render_challenge_page
from .store import (
    SessionBridge,
    SessionSource,
    get_pass_token,
    is_well_formed_token,
    make_pass_cookie,
    new_pass_token,
)
from .trust import ClientOrigin, Resolver, TrustResolver, is_direct_access

_PAGE_HEADERS: tuple[tuple[str, str], ...] = (
    ("Content-Type", "text/html; charset=utf-8"),
    ("Cache-Control", "no-store"),
)


@dataclass(slots=True)
class DirectAccessGate:
    """Bot-mitigation gate for direct (referer-less) traffic.

    Do not instantiate this class directly - use ``direct_access_gate()``.

    Example::

        from directgate import direct_access_gate

        gate = direct_access_gate(cookie_domain="example.com")

        decision = gate.check(request, session=lambda: session)
        if decision.is_halted():
            return decision.body, decision.status_code, decision.headers
    """

    _config: GateConfig
    _trust: TrustResolver
    _rng: random.Random | None = None

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def trust(self) -> TrustResolver:
        return self._trust

    def check(
        self,
        request: Any,
        *,
        session: SessionSource = None,
        form: Any = None,
    ) -> GateDecision:
        """Run the gate for one request.

        Args:
            ``request``: A Flask/Werkzeug, Django or ASGI request, a plain
                mapping, or a ``RequestContext``.
            ``session``: The session mapping, or a zero-argument callable
                returning it. The callable is not invoked when the request
                already holds a valid pass cookie.
            ``form``: Form fields, only needed for ASGI scopes.

        Returns:
            A ``GateDecision``. Never raises for DNS failures, missing
            sessions or malformed answers.
        """
        t0 = time.perf_counter()
        ctx = coerce_request_context(request, form=form)
        decision = self._decide(ctx, session)
        if logger.isEnabledFor(logging.DEBUG):
            total_ms = (time.perf_counter() - t0) * 1000.0
            logger.debug(
                "decision: state=%s action=%s method=%s path=%s total_ms=%.3f",
                decision.state.value,
                decision.action.value,
                ctx.method,
                ctx.path,
                round(total_ms, 3),
                extra={
                    "event": "directgate_decision",
                    "state": decision.state.value,
                    "action": decision.action.value,
                    "method": ctx.method,
                    "path": ctx.path,
                    "origin_ip": decision.origin.ip if decision.origin else None,
                    "origin_domain": decision.origin.domain if decision.origin else None,
                    "total_ms": round(total_ms, 3),
                },
            )
        elif decision.state is GateState.CHALLENGE_PASSED:
            logger.info(
                "challenge passed: path=%s",
                ctx.path,
                extra={"event": "directgate_challenge_passed", "path": ctx.path},
            )
        return decision

    def _decide(self, ctx: RequestContext, session: SessionSource) -> GateDecision:
        cfg = self._config
        if not cfg.enabled or cfg.is_exempt(ctx.path):
            return GateDecision(state=GateState.PASSED)

        if is_well_formed_token(get_pass_token(ctx, cfg.cookie_name)):
            return GateDecision(state=GateState.PASSED)

        bridge = SessionBridge(session, key=cfg.session_key)
        bridge.ensure()

        submitted = self._submitted_answer(ctx)
        state = GateState.PASSED
        origin: ClientOrigin | None = None

        if is_direct_access(ctx.referer):
            origin = self._trust.origin(ctx)
            if self._trust.is_trusted(origin):
                state = GateState.TRUSTED_BY_ORIGIN
            elif submitted is None:
                return self._challenge(bridge, GateState.CHALLENGE_ISSUED, origin=origin)

        if submitted is not None:
            if verify_answer(submitted, bridge.get_expected_answer()):
                bridge.clear_expected_answer()
                return self._passed(ctx, origin)
            return self._challenge(
                bridge, GateState.CHALLENGE_FAILED, error=cfg.error_message, origin=origin
            )

        return GateDecision(state=state, origin=origin)

    def _submitted_answer(self, ctx: RequestContext) -> str | None:
        if ctx.method != "POST":
            return None
        return ctx.form.get(self._config.answer_field)

    def _challenge(
        self,
        bridge: SessionBridge,
        state: GateState,
        *,
        error: str | None = None,
        origin: ClientOrigin | None = None,
    ) -> GateDecision:
        cfg = self._config
        challenge = generate_challenge(cfg.operators, rng=self._rng)
        bridge.set_expected_answer(challenge.expected_answer)
        body = render_challenge_page(
            challenge.question,
            error,
            title=cfg.page_title,
            prompt=cfg.page_prompt,
            field_name=cfg.answer_field,
            lang=cfg.page_lang,
        )
        return GateDecision(
            state=state,
            action=Action.HALT,
            status_code=cfg.challenge_status_code,
            body=body,
            headers=_PAGE_HEADERS,
            question=challenge.question,
            error=error,
            origin=origin,
        )

    def _passed(self, ctx: RequestContext, origin: ClientOrigin | None) -> GateDecision:
        cfg = self._config
        cookie = make_pass_cookie(new_pass_token(), cfg)
        if cfg.redirect_on_success:
            # 303 turns the POST into a GET of the page the client asked for.
            return GateDecision(
                state=GateState.CHALLENGE_PASSED,
                action=Action.HALT,
                status_code=303,
                body="",
                headers=(("Location", ctx.url), ("Cache-Control", "no-store")),
                cookies=(cookie,),
                origin=origin,
            )
        return GateDecision(
            state=GateState.CHALLENGE_PASSED, cookies=(cookie,), origin=origin
        )


def direct_access_gate(
    config: GateConfig | None = None,
    *,
    resolver: Resolver | None = None,
    rng: random.Random | None = None,
    **options: Any,
) -> DirectAccessGate:
    """Create a direct-access gate.

    Args:
        ``config``: A ``GateConfig``. Defaults to ``GateConfig.from_env()``.
        ``resolver``: Replacement for ``socket.gethostbyaddr`` (same return
            shape). Useful for tests or a custom DNS client.
        ``rng``: Random source for challenge generation. Only set this in
            tests.
        ``**options``: Any ``GateConfig`` field, overriding ``config``.

    Raises:
        DirectGateMisconfiguration: For unknown or invalid options.

    Example::

        gate = direct_access_gate(
            cookie_domain="example.com",
            allowed_domains={"googlebot.com", "google.com", "yandex.com"},
            operators=("+", "-", "*"),
            redirect_on_success=True,
        )
    """
    if config is None:
        try:
            config = GateConfig.from_env(**options)
        except TypeError as e:
            raise DirectGateMisconfiguration(str(e)) from None
    elif options:
        config = config.replace(**options)
    trust = TrustResolver(
        allowed_domains=config.allowed_domains,
        timeout_ms=config.dns_timeout_ms,
        cache_ttl=config.dns_cache_ttl,
        resolver=resolver,
    )
    return DirectAccessGate(_config=config, _trust=trust, _rng=rng)
