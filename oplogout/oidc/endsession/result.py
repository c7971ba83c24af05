from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from oplogout.common.urls import add_params_to_uri

from .message_store import MessageStore
from .models import ErrorOutcome
from .models import LogoutMessage
from .models import ValidatedOutcome
from .models import ValidationOutcome
from .redirect import resolve_logout_url

log = logging.getLogger(__name__)


@dataclass
class UserInteractionOptions:
    """Where the end user is sent to finish a logout."""

    #: logout page, ``~/`` marks a path relative to the application root
    logout_url: str = "~/logout"
    #: query parameter carrying the logout message key
    logout_id_parameter: str = "logoutId"


class EndSessionResult:
    """Redirect the user agent to the logout page after an end session
    request was validated.

    When the request was fully validated, a :class:`LogoutMessage` is written
    to the message store and its key is added to the logout page url.
    Failed validation still redirects, without any hint about the failure::

        result = EndSessionResult(outcome, options, store)
        status, body, headers = result.execute("https://server", "/")

    :param outcome: ValidationOutcome from the end session validator
    :param options: UserInteractionOptions instance
    :param message_store: MessageStore for the logout message
    """

    def __init__(
        self,
        outcome: ValidationOutcome,
        options: UserInteractionOptions,
        message_store: MessageStore,
    ):
        self.outcome = outcome
        self.options = options
        self.message_store = message_store

    def create_logout_message(self) -> LogoutMessage | None:
        # error outcomes may carry a request, it is never passed on
        if isinstance(self.outcome, ErrorOutcome):
            log.debug("End session validation failed: %r", self.outcome.error)
            return None
        if not isinstance(self.outcome, ValidatedOutcome):
            return None

        request = self.outcome.request
        if request is None or not request.has_payload:
            return None
        return LogoutMessage.from_request(request)

    def execute(self, origin: str, base_path: str = "/") -> tuple[int, Any, list]:
        """Create the redirect response.

        :param origin: scheme, host and port of the current request
        :param base_path: path the application is mounted under
        :return: Tuple of (status_code, body, headers)
        :raises StoreUnavailableError: if the logout message can not be stored
        """
        logout_id = None
        message = self.create_logout_message()
        if message is not None:
            logout_id = self.message_store.write(message)
            log.debug("Stored logout message for client %r", message.client_id)

        uri = resolve_logout_url(self.options.logout_url, origin, base_path)
        if logout_id is not None:
            uri = add_params_to_uri(uri, [(self.options.logout_id_parameter, logout_id)])
        return 302, "", [("Location", uri)]
