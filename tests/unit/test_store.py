"""Unit tests for the pass cookie and session bridge."""

from __future__ import annotations

import pytest
from helpers import make_context

from directgate import GateConfig, PassCookie, SessionBridge
from directgate.store import (
    PASS_TOKEN_PREFIX,
    get_pass_token,
    is_well_formed_token,
    make_pass_cookie,
    new_pass_token,
)


def test_new_pass_token_is_unique_and_well_formed():
    a = new_pass_token()
    b = new_pass_token()
    assert a != b
    assert a.startswith(PASS_TOKEN_PREFIX + "_")
    assert is_well_formed_token(a)
    assert is_well_formed_token(b)


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "abc",
        "5f0e3c1a2b",
        "pass_",
        "pass_not-a-valid-suffix",
        # Valid TypeID, wrong prefix.
        "user_01h455vb4pex5vsknk084sn02q",
    ],
)
def test_malformed_tokens(value):
    assert not is_well_formed_token(value)


def test_get_pass_token():
    ctx = make_context(cookies={"gate": "pass_x"})
    assert get_pass_token(ctx, "gate") == "pass_x"
    assert get_pass_token(ctx, "other") is None
    assert get_pass_token(make_context(cookies={"gate": ""}), "gate") is None


def test_pass_cookie_header():
    c = PassCookie(
        name="gate",
        value="pass_abc",
        max_age=43200,
        domain="example.com",
    )
    header = c.to_header()
    assert header.startswith("gate=pass_abc")
    assert "Max-Age=43200" in header
    assert "Path=/" in header
    assert "Domain=example.com" in header
    assert "Secure" in header
    assert "HttpOnly" in header
    assert "SameSite=Lax" in header


def test_pass_cookie_header_host_only_and_insecure():
    c = PassCookie(name="gate", value="v", max_age=60, secure=False, httponly=False, samesite=None)
    header = c.to_header()
    assert "Domain" not in header
    assert "Secure" not in header
    assert "HttpOnly" not in header
    assert "SameSite" not in header


def test_pass_cookie_dict_omits_value():
    c = PassCookie(name="gate", value="secret-token", max_age=60)
    assert "value" not in c.to_dict()
    assert c.to_dict()["name"] == "gate"


def test_make_pass_cookie_uses_config():
    cfg = GateConfig(cookie_name="gate", cookie_domain="example.com")
    c = make_pass_cookie("pass_abc", cfg)
    assert c.name == "gate"
    assert c.value == "pass_abc"
    assert c.max_age == 43200
    assert c.path == "/"
    assert c.domain == "example.com"
    assert c.secure and c.httponly


def test_session_bridge_is_lazy():
    calls = []

    def factory():
        calls.append(1)
        return {}

    bridge = SessionBridge(factory)
    assert calls == []
    bridge.ensure()
    bridge.ensure()
    assert calls == [1]


def test_session_bridge_roundtrip_and_overwrite():
    session: dict = {}
    bridge = SessionBridge(session)
    assert bridge.get_expected_answer() is None
    bridge.set_expected_answer(7)
    assert session == {"captcha_answer": 7}
    bridge.set_expected_answer(-3)
    assert bridge.get_expected_answer() == -3
    bridge.clear_expected_answer()
    assert "captcha_answer" not in session
    bridge.clear_expected_answer()


def test_session_bridge_custom_key():
    session: dict = {}
    SessionBridge(session, key="answer").set_expected_answer(4)
    assert session == {"answer": 4}


@pytest.mark.parametrize(
    "stored,expected",
    [("7", 7), (" -2 ", -2), (7.0, 7), ("x", None), (True, None), (None, None)],
)
def test_session_bridge_reads_serialized_values(stored, expected):
    bridge = SessionBridge({"captcha_answer": stored})
    assert bridge.get_expected_answer() == expected


@pytest.mark.parametrize("source", [None, lambda: None])
def test_session_bridge_missing_backend_fails_closed(source, caplog):
    bridge = SessionBridge(source)
    with caplog.at_level("WARNING", logger="directgate"):
        bridge.set_expected_answer(7)
    assert bridge.missing
    # Writes went nowhere shared; a new bridge sees nothing.
    assert SessionBridge(source).get_expected_answer() is None
    assert any(
        getattr(r, "event", None) == "directgate_session_missing" for r in caplog.records
    )
