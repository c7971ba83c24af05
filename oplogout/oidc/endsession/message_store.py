"""oplogout.oidc.endsession.message_store.
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Short lived storage for :class:`LogoutMessage` objects. The end session
result writes a message and passes the returned key to the logout page,
which reads the message back with the key.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from oplogout.common.security import generate_token

from .errors import MessageNotFoundError
from .errors import StoreUnavailableError
from .models import LogoutMessage

log = logging.getLogger(__name__)

#: seconds a logout message stays readable
DEFAULT_MESSAGE_LIFETIME = 3600


@dataclass(frozen=True)
class StoredMessage:
    key: str
    message: LogoutMessage
    created_at: float

    def is_expired(self, now: float, lifetime: float) -> bool:
        return now >= self.created_at + lifetime


class MessageStore:
    """Base class of logout message stores. Developers can implement their
    own store against a database or a distributed cache::

        class RedisMessageStore(MessageStore):
            def write(self, message):
                key = self.generate_key()
                ...
                return key

            def read(self, key): ...

            def delete(self, key): ...

    Keys are created with :meth:`generate_key`, which draws from the
    operating system's random source. Pass ``generate_key`` to replace it.
    Reading a message does not remove it, it stays readable until it
    expires or :meth:`delete` is called.
    """

    #: length of generated keys
    KEY_LENGTH = 48

    def __init__(
        self,
        lifetime: float = DEFAULT_MESSAGE_LIFETIME,
        generate_key: Callable[[], str] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        if lifetime <= 0:
            raise ValueError(f"Message lifetime must be positive, got {lifetime!r}")
        self.lifetime = lifetime
        if generate_key is not None:
            self.generate_key = generate_key
        self.clock = clock or time.time

    def generate_key(self) -> str:
        return generate_token(self.KEY_LENGTH)

    def write(self, message: LogoutMessage) -> str:
        """Persist the message under a new key and return the key.

        :param message: LogoutMessage instance
        :return: opaque key string
        :raises StoreUnavailableError: if the message can not be stored
        """
        raise NotImplementedError()

    def read(self, key: str) -> LogoutMessage:
        """Return the message stored under ``key``.

        :raises MessageNotFoundError: if the key is unknown or expired
        """
        raise NotImplementedError()

    def delete(self, key: str) -> None:
        """Remove the message stored under ``key``, if any."""
        raise NotImplementedError()


class MemoryMessageStore(MessageStore):
    """Keep logout messages in process memory. Suitable for tests and
    single process deployments.
    """

    def __init__(
        self,
        lifetime: float = DEFAULT_MESSAGE_LIFETIME,
        generate_key: Callable[[], str] | None = None,
        clock: Callable[[], float] | None = None,
        max_entries: int | None = None,
    ):
        super().__init__(lifetime, generate_key, clock)
        self.max_entries = max_entries
        self._entries: dict[str, StoredMessage] = {}
        self._lock = threading.Lock()

    @property
    def entries(self) -> dict[str, StoredMessage]:
        with self._lock:
            return dict(self._entries)

    def write(self, message: LogoutMessage) -> str:
        now = self.clock()
        with self._lock:
            self._remove_expired(now)
            if self.max_entries is not None and len(self._entries) >= self.max_entries:
                raise StoreUnavailableError(description="Message store is full")

            key = self.generate_key()
            while key in self._entries:
                log.debug("Logout message key collision, generating a new key")
                key = self.generate_key()
            self._entries[key] = StoredMessage(key, message, now)
        return key

    def read(self, key: str) -> LogoutMessage:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(self.clock(), self.lifetime):
            raise MessageNotFoundError(key)
        return entry.message

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def remove_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        with self._lock:
            return self._remove_expired(self.clock())

    def _remove_expired(self, now):
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.is_expired(now, self.lifetime)
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)


class CacheMessageStore(MessageStore):
    """Keep logout messages in a cachelib cache, e.g. ``SimpleCache`` for a
    single process or ``RedisCache`` shared by several workers::

        from cachelib import RedisCache

        store = CacheMessageStore(RedisCache(host="localhost"), lifetime=600)

    Entries are written with ``cache.add``, so an existing key is never
    overwritten. The cache timeout is the message lifetime rounded up to
    whole seconds.
    """

    def __init__(
        self,
        cache,
        lifetime: float = DEFAULT_MESSAGE_LIFETIME,
        generate_key: Callable[[], str] | None = None,
        clock: Callable[[], float] | None = None,
        key_prefix: str = "logout_message:",
    ):
        super().__init__(lifetime, generate_key, clock)
        self.cache = cache
        self.key_prefix = key_prefix

    def write(self, message: LogoutMessage) -> str:
        value = {"message": message.to_dict(), "created_at": self.clock()}
        while True:
            key = self.generate_key()
            cache_key = self.key_prefix + key
            try:
                if self.cache.add(cache_key, value, timeout=math.ceil(self.lifetime)):
                    return key
                exists = self.cache.has(cache_key)
            except Exception as exc:
                raise StoreUnavailableError(description=str(exc)) from exc

            if not exists:
                raise StoreUnavailableError(description="Cache refused the message")
            log.debug("Logout message key collision, generating a new key")

    def read(self, key: str) -> LogoutMessage:
        if not key:
            raise MessageNotFoundError(key)
        try:
            value = self.cache.get(self.key_prefix + key)
        except Exception as exc:
            raise StoreUnavailableError(description=str(exc)) from exc

        if not value or self.clock() >= value["created_at"] + self.lifetime:
            raise MessageNotFoundError(key)
        return LogoutMessage.from_dict(value["message"])

    def delete(self, key: str) -> None:
        try:
            self.cache.delete(self.key_prefix + key)
        except Exception as exc:
            raise StoreUnavailableError(description=str(exc)) from exc
