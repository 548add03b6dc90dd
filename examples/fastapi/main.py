import os
from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from directgate import Operator, direct_access_gate
from directgate.starlette import DirectAccessMiddleware

app = FastAPI()

# The gate must run inside SessionMiddleware, so it is added first.
app.add_middleware(
    DirectAccessMiddleware,
    gate=direct_access_gate(
        operators=[Operator.ADD, Operator.SUBTRACT, Operator.MULTIPLY],
        redirect_on_success=True,
    ),
)
app.add_middleware(SessionMiddleware, secret_key=os.environ["SECRET_KEY"])


@app.api_route("/", methods=["GET", "POST"])
async def hello(request: Request):
    decision = request.state.directgate
    return {"message": "Hello world", "decision": decision.to_dict()}
