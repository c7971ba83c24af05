import pytest
from flask import Flask
from flask import request

from oplogout.integrations.flask_oidc import EndSession
from oplogout.oidc.endsession import ErrorOutcome
from oplogout.oidc.endsession import MemoryMessageStore
from oplogout.oidc.endsession import UnvalidatedOutcome
from oplogout.oidc.endsession import ValidatedEndSessionRequest
from oplogout.oidc.endsession import ValidatedOutcome


def validate_end_session_request():
    """Stand-in validator: trusts ``client_id`` unless ``error`` is sent."""
    client_id = request.args.get("client_id")
    req = None
    if client_id:
        req = ValidatedEndSessionRequest(
            client_id=client_id,
            post_logout_redirect_uri=request.args.get("post_logout_redirect_uri"),
            state=request.args.get("state"),
        )
    if request.args.get("error"):
        return ErrorOutcome(request.args["error"], request=req)
    if req is None:
        return UnvalidatedOutcome()
    return ValidatedOutcome(req)


@pytest.fixture
def app():
    app = Flask(__name__)
    app.debug = True
    app.testing = True
    app.secret_key = "testing"
    with app.app_context():
        yield app


@pytest.fixture
def store():
    return MemoryMessageStore()


@pytest.fixture
def end_session(app, store):
    end_session = EndSession(app, message_store=store)

    @app.route("/connect/endsession")
    def end_session_endpoint():
        return end_session.create_end_session_response(validate_end_session_request())

    @app.route("/logout")
    def logout():
        message = end_session.get_logout_message()
        if message is None:
            return "Logged out"
        return f"Logged out of {message.client_id}"

    return end_session


@pytest.fixture
def test_client(app):
    return app.test_client()
