"""Session and cookie primitives used by the gate.

Two pieces of state survive between requests:

- the expected challenge answer, kept in the host framework's session under
  a single key, overwritten on every (re)issue;
- the pass token, a long-lived cookie held by the client.

Nothing here knows how sessions are stored (signed cookie, cache, database);
any ``MutableMapping`` works.
"""

from __future__ import annotations

from dataclasses import dataclass
from http.cookies import SimpleCookie
from typing import Any, Callable, MutableMapping, Union

from typeid import TypeID

from ._logging import logger
from .config import DEFAULT_FIELD, GateConfig
from .context import RequestContext

PASS_TOKEN_PREFIX = "pass"
# prefix + "_" + 26-character base32 suffix
_TOKEN_LENGTH = len(PASS_TOKEN_PREFIX) + 27

Session = MutableMapping[str, Any]
SessionSource = Union[Session, Callable[[], "Session | None"], None]


def new_pass_token() -> str:
    """Generate an opaque, unique pass token such as ``pass_01h455vb...``."""
    return str(TypeID(prefix=PASS_TOKEN_PREFIX))


def is_well_formed_token(value: str | None) -> bool:
    """True when ``value`` parses as a pass-token TypeID."""
    if not value or not isinstance(value, str):
        return False
    # typeid fills in a fresh suffix when given an empty one, so check the
    # shape before parsing.
    if len(value) != _TOKEN_LENGTH or not value.startswith(PASS_TOKEN_PREFIX + "_"):
        return False
    try:
        tid = TypeID.from_string(value)
    except Exception:
        # typeid raises its own validation errors for bad prefixes/suffixes.
        return False
    return tid.prefix == PASS_TOKEN_PREFIX


def get_pass_token(ctx: RequestContext, cookie_name: str) -> str | None:
    return ctx.cookies.get(cookie_name) or None


@dataclass(frozen=True, slots=True)
class PassCookie:
    """A ``Set-Cookie`` instruction for the pass token."""

    name: str
    value: str
    max_age: int
    path: str = "/"
    domain: str | None = None
    secure: bool = True
    httponly: bool = True
    samesite: str | None = "Lax"

    def to_header(self) -> str:
        """Render the ``Set-Cookie`` header value."""
        jar = SimpleCookie()
        jar[self.name] = self.value
        m = jar[self.name]
        m["max-age"] = str(self.max_age)
        m["path"] = self.path
        if self.domain:
            m["domain"] = self.domain
        if self.secure:
            m["secure"] = True
        if self.httponly:
            m["httponly"] = True
        if self.samesite:
            m["samesite"] = self.samesite
        return m.OutputString()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "max_age": self.max_age,
            "path": self.path,
            "domain": self.domain,
            "secure": self.secure,
            "httponly": self.httponly,
            "samesite": self.samesite,
        }


def make_pass_cookie(value: str, config: GateConfig) -> PassCookie:
    return PassCookie(
        name=config.cookie_name,
        value=value,
        max_age=config.cookie_max_age,
        path="/",
        domain=config.cookie_domain,
        secure=config.cookie_secure,
        httponly=config.cookie_httponly,
        samesite=config.cookie_samesite,
    )


class SessionBridge:
    """Lazy access to the host session for the expected challenge answer.

    ``session`` may be a mapping, a zero-argument factory returning one, or
    ``None``. The factory is only called by ``ensure()``, so requests that
    already hold a pass token never start a session.

    Without a session backend every read returns ``None`` and writes are
    discarded: verification then always fails and the client keeps getting
    challenges.
    """

    __slots__ = ("_source", "_session", "_key", "missing")

    def __init__(self, session: SessionSource, key: str = DEFAULT_FIELD) -> None:
        self._source = session
        self._session: Session | None = None
        self._key = key
        self.missing = False

    def ensure(self) -> Session:
        if self._session is not None:
            return self._session
        src = self._source
        s = src() if callable(src) and not isinstance(src, MutableMapping) else src
        if s is None:
            self.missing = True
            logger.warning(
                "no session backend available; challenges cannot be verified",
                extra={"event": "directgate_session_missing"},
            )
            s = {}
        self._session = s
        return s

    def get_expected_answer(self) -> int | None:
        v = self.ensure().get(self._key)
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return int(v)
        # Some session serializers round-trip numbers as strings.
        try:
            return int(str(v).strip())
        except ValueError:
            return None

    def set_expected_answer(self, answer: int) -> None:
        self.ensure()[self._key] = int(answer)

    def clear_expected_answer(self) -> None:
        self.ensure().pop(self._key, None)
