"""Pytest fixtures for Flask integration tests."""

import pytest

pytest.importorskip(
    "flask",
    reason="Flask not installed; skipping Flask tests.",
)

from flask import Flask

from directgate.flask import DirectAccessFlask, current_decision


@pytest.fixture
def make_flask_app(make_gate):
    """Factory for a Flask application protected by the gate.

    Keyword arguments are ``GateConfig`` fields. The app serves ``/`` and
    ``/articles`` and echoes the gate state the view saw.
    """

    def _make(**options) -> Flask:
        app = Flask(__name__)
        app.secret_key = "test-secret"
        DirectAccessFlask(make_gate(**options), app)

        @app.route("/", methods=["GET", "POST"])
        @app.route("/articles", methods=["GET", "POST"])
        def index():
            decision = current_decision()
            return decision.state.value if decision else "NONE", 200

        @app.route("/health")
        def health():
            return "ok", 200

        return app

    return _make


@pytest.fixture
def flask_app(make_flask_app) -> Flask:
    return make_flask_app()


@pytest.fixture
def flask_client(flask_app: Flask):
    """Create a test client for the Flask application.

    The client keeps the Flask session cookie between requests.
    """
    return flask_app.test_client()
