from flask import Flask, jsonify
import os
import logging

from directgate import direct_access_gate
from directgate.flask import DirectAccessFlask, current_decision

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

app = Flask(__name__)
app.secret_key = os.environ["SECRET_KEY"]
debug = os.environ.get("FLASK_DEBUG") == "1"

gate = direct_access_gate(
    cookie_domain=os.environ.get("COOKIE_DOMAIN"),
    # Local development runs over plain HTTP.
    cookie_secure=not debug,
    allowed_domains={"google.com", "googlebot.com", "yandex.com"},
    exempt_paths=["/healthz"],
)
DirectAccessFlask(gate, app)


@app.route("/", methods=["GET", "POST"])
def hello():
    decision = current_decision()
    return jsonify(message="Hello world", decision=decision.to_dict())


@app.route("/healthz")
def healthz():
    return "ok"


if __name__ == "__main__":
    app.run(debug=debug)
