import logging

from cachelib import SimpleCache
from flask import Response
from flask import current_app
from flask import request

from oplogout.oidc.endsession import CacheMessageStore
from oplogout.oidc.endsession import EndSessionResult
from oplogout.oidc.endsession import MessageNotFoundError
from oplogout.oidc.endsession import UserInteractionOptions

log = logging.getLogger(__name__)


class EndSession:
    """Flask extension that redirects to the logout page after an end
    session request and gives the logout page access to the logout message::

        end_session = EndSession(app)


        @app.route("/connect/endsession")
        def end_session_endpoint():
            outcome = validate_end_session_request(request)
            return end_session.create_end_session_response(outcome)


        @app.route("/logout")
        def logout():
            message = end_session.get_logout_message()
            return render_template("logout.html", message=message)

    It reads these configuration values:

    - ``OIDC_LOGOUT_URL``: logout page url, defaults to ``~/logout``
    - ``OIDC_LOGOUT_ID_PARAMETER``: query parameter, defaults to ``logoutId``
    - ``OIDC_LOGOUT_MESSAGE_LIFETIME``: seconds a message stays readable,
      must match the lifetime of a given ``message_store``

    Without a ``message_store``, messages are kept in a ``SimpleCache``.
    Pass a :class:`CacheMessageStore` over a shared cache when running
    several workers.
    """

    def __init__(self, app=None, message_store=None):
        self.message_store = message_store
        if app is not None:
            self.init_app(app)

    def init_app(self, app, message_store=None):
        app.config.setdefault("OIDC_LOGOUT_URL", "~/logout")
        app.config.setdefault("OIDC_LOGOUT_ID_PARAMETER", "logoutId")

        if message_store is not None:
            self.message_store = message_store

        if self.message_store is None:
            app.config.setdefault("OIDC_LOGOUT_MESSAGE_LIFETIME", 3600)
            self.message_store = CacheMessageStore(
                SimpleCache(),
                lifetime=app.config["OIDC_LOGOUT_MESSAGE_LIFETIME"],
            )
        else:
            lifetime = app.config.setdefault(
                "OIDC_LOGOUT_MESSAGE_LIFETIME", self.message_store.lifetime
            )
            if lifetime != self.message_store.lifetime:
                raise ValueError(
                    f"OIDC_LOGOUT_MESSAGE_LIFETIME is {lifetime!r}, but the "
                    f"message store keeps messages for {self.message_store.lifetime!r}"
                )

        app.extensions["oidc_end_session"] = self

    def get_options(self):
        config = current_app.config
        return UserInteractionOptions(
            logout_url=config["OIDC_LOGOUT_URL"],
            logout_id_parameter=config["OIDC_LOGOUT_ID_PARAMETER"],
        )

    def create_end_session_response(self, outcome):
        """Create the redirect to the logout page for a validation outcome.

        :param outcome: ValidationOutcome of the end session request
        :return: Flask Response
        """
        origin = f"{request.scheme}://{request.host}"
        base_path = request.script_root or "/"
        result = EndSessionResult(outcome, self.get_options(), self.message_store)
        status, body, headers = result.execute(origin, base_path)
        return self.handle_response(status, body, headers)

    def get_logout_message(self, logout_id=None):
        """Read the logout message for the current logout page request.

        :param logout_id: message key, defaults to the configured query
            parameter of the current request
        :return: LogoutMessage or None
        """
        if logout_id is None:
            parameter = current_app.config["OIDC_LOGOUT_ID_PARAMETER"]
            logout_id = request.args.get(parameter)
        if not logout_id:
            return None

        try:
            return self.message_store.read(logout_id)
        except MessageNotFoundError:
            log.debug("No logout message for %r", logout_id)
            return None

    def handle_response(self, status_code, payload, headers):
        return Response(payload, status=status_code, headers=headers)
