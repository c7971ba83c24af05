"""Data passed between the end session validator, the result builder and
the logout page.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any
from typing import Mapping
from typing import Union

from oplogout.common.urls import add_params_to_uri


@dataclass
class ValidatedEndSessionRequest:
    """End session request data that passed validation.

    Instances are created by the validator of the hosting application and
    handed over inside a :class:`ValidatedOutcome`.
    """

    client_id: str | None = None
    client_name: str | None = None
    post_logout_redirect_uri: str | None = None
    state: str | None = None
    subject_id: str | None = None
    session_id: str | None = None
    #: clients that took part in the session being terminated
    client_ids: list[str] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def has_payload(self) -> bool:
        return bool(self.client_id or self.client_ids)


@dataclass(frozen=True)
class LogoutMessage:
    """Context needed by the logout page to finish a logout after the
    redirect. A message is never modified once created.
    """

    client_id: str | None = None
    client_name: str | None = None
    post_logout_redirect_uri: str | None = None
    subject_id: str | None = None
    session_id: str | None = None
    client_ids: tuple[str, ...] = ()
    #: opaque extension data, left out of the hash
    parameters: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "client_ids", tuple(self.client_ids))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @classmethod
    def from_request(cls, request: ValidatedEndSessionRequest) -> LogoutMessage:
        redirect_uri = request.post_logout_redirect_uri
        if redirect_uri and request.state:
            redirect_uri = add_params_to_uri(redirect_uri, {"state": request.state})

        return cls(
            client_id=request.client_id,
            client_name=request.client_name,
            post_logout_redirect_uri=redirect_uri,
            subject_id=request.subject_id,
            session_id=request.session_id,
            client_ids=request.client_ids,
            parameters=request.extensions,
        )

    @property
    def contains_payload(self) -> bool:
        return bool(self.client_id or self.client_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "client_name": self.client_name,
            "post_logout_redirect_uri": self.post_logout_redirect_uri,
            "subject_id": self.subject_id,
            "session_id": self.session_id,
            "client_ids": list(self.client_ids),
            "parameters": dict(self.parameters),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogoutMessage:
        return cls(
            client_id=data.get("client_id"),
            client_name=data.get("client_name"),
            post_logout_redirect_uri=data.get("post_logout_redirect_uri"),
            subject_id=data.get("subject_id"),
            session_id=data.get("session_id"),
            client_ids=data.get("client_ids") or (),
            parameters=data.get("parameters") or {},
        )


@dataclass(frozen=True)
class ValidatedOutcome:
    """The end session request was fully validated."""

    request: ValidatedEndSessionRequest


@dataclass(frozen=True)
class ErrorOutcome:
    """Validation failed. An attached ``request`` is kept for diagnostics
    only and never leaves the provider.
    """

    error: str | None = None
    description: str | None = None
    request: ValidatedEndSessionRequest | None = field(default=None, repr=False)


@dataclass(frozen=True)
class UnvalidatedOutcome:
    """No error, but nothing was validated, e.g. an anonymous caller."""


ValidationOutcome = Union[ValidatedOutcome, ErrorOutcome, UnvalidatedOutcome]


def create_validation_outcome(
    validated_request: ValidatedEndSessionRequest | None = None,
    error: str | None = None,
    description: str | None = None,
) -> ValidationOutcome:
    """Build an outcome from validators that report an error code and an
    optional request separately. An error always wins over the request::

        outcome = create_validation_outcome(result.request, result.error)
    """
    if error:
        return ErrorOutcome(error, description, validated_request)
    if validated_request is None:
        return UnvalidatedOutcome()
    return ValidatedOutcome(validated_request)
