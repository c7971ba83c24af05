"""oplogout.oidc.endsession.
~~~~~~~~~~~~~~~~~~~~~~~~~

Redirect to the logout page after an OpenID Connect end session request,
passing the logout context through a short lived message store.
"""

from .errors import MessageNotFoundError
from .errors import StoreUnavailableError
from .message_store import CacheMessageStore
from .message_store import MemoryMessageStore
from .message_store import MessageStore
from .message_store import StoredMessage
from .models import ErrorOutcome
from .models import LogoutMessage
from .models import UnvalidatedOutcome
from .models import ValidatedEndSessionRequest
from .models import ValidatedOutcome
from .models import ValidationOutcome
from .models import create_validation_outcome
from .redirect import resolve_logout_url
from .result import EndSessionResult
from .result import UserInteractionOptions

__all__ = [
    "CacheMessageStore",
    "EndSessionResult",
    "ErrorOutcome",
    "LogoutMessage",
    "MemoryMessageStore",
    "MessageNotFoundError",
    "MessageStore",
    "StoreUnavailableError",
    "StoredMessage",
    "UnvalidatedOutcome",
    "UserInteractionOptions",
    "ValidatedEndSessionRequest",
    "ValidatedOutcome",
    "ValidationOutcome",
    "create_validation_outcome",
    "resolve_logout_url",
]
