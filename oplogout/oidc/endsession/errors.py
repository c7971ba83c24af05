from oplogout.common.errors import OPLogoutError


class StoreUnavailableError(OPLogoutError):
    """The message store backend could not accept a write."""

    error = "store_unavailable"


class MessageNotFoundError(OPLogoutError):
    """No unexpired logout message exists under the given key."""

    error = "message_not_found"

    def __init__(self, key=None, description=None):
        super().__init__(description=description)
        self.key = key
