"""Pytest fixtures for FastAPI integration tests."""

import pytest

pytest.importorskip(
    "fastapi",
    reason="FastAPI not installed; skipping FastAPI tests.",
)
pytest.importorskip(
    "itsdangerous",
    reason="itsdangerous not installed; SessionMiddleware unavailable.",
)

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from directgate.starlette import DirectAccessMiddleware


@pytest.fixture
def make_fastapi_app(make_gate):
    """Factory for a FastAPI application protected by the gate.

    Keyword arguments are ``GateConfig`` fields; ``sessions=False`` leaves
    out ``SessionMiddleware``.
    """

    def _make(sessions: bool = True, **options) -> FastAPI:
        app = FastAPI()
        app.add_middleware(DirectAccessMiddleware, gate=make_gate(**options))
        if sessions:
            app.add_middleware(SessionMiddleware, secret_key="test-secret")

        @app.api_route("/", methods=["GET", "POST"])
        @app.api_route("/articles", methods=["GET", "POST"])
        async def index(request: Request):
            return PlainTextResponse(request.state.directgate.state.value)

        return app

    return _make


@pytest.fixture
def fastapi_app(make_fastapi_app) -> FastAPI:
    return make_fastapi_app()


@pytest.fixture
def fastapi_client(fastapi_app: FastAPI) -> TestClient:
    """Create a TestClient for the FastAPI application.

    HTTPS, so the ``Secure`` pass cookie is sent back on later requests.
    """
    return TestClient(fastapi_app, base_url="https://testserver")
