import dataclasses
from concurrent.futures import ThreadPoolExecutor

import pytest
from cachelib import SimpleCache

from oplogout.common.security import UNICODE_ASCII_CHARACTER_SET
from oplogout.oidc.endsession import CacheMessageStore
from oplogout.oidc.endsession import LogoutMessage
from oplogout.oidc.endsession import MemoryMessageStore
from oplogout.oidc.endsession import MessageNotFoundError
from oplogout.oidc.endsession import MessageStore
from oplogout.oidc.endsession import StoreUnavailableError


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def keys(*values):
    it = iter(values)
    return lambda: next(it)


@pytest.fixture
def message():
    return LogoutMessage(
        client_id="client",
        post_logout_redirect_uri="http://client/post-logout-callback",
        session_id="sid",
    )


@pytest.fixture(params=["memory", "cache"])
def make_store(request):
    def _make_store(**kwargs):
        if request.param == "memory":
            return MemoryMessageStore(**kwargs)
        return CacheMessageStore(SimpleCache(threshold=5000), **kwargs)

    return _make_store


def test_base_store_is_abstract(message):
    store = MessageStore()
    with pytest.raises(NotImplementedError):
        store.write(message)
    with pytest.raises(NotImplementedError):
        store.read("key")
    with pytest.raises(NotImplementedError):
        store.delete("key")


def test_generated_keys():
    store = MessageStore()
    key = store.generate_key()
    assert len(key) == MessageStore.KEY_LENGTH
    assert all(c in UNICODE_ASCII_CHARACTER_SET for c in key)


def test_write_and_read(make_store, message):
    store = make_store()
    key = store.write(message)
    assert store.read(key) == message


def test_read_does_not_consume(make_store, message):
    store = make_store()
    key = store.write(message)
    assert store.read(key) == message
    assert store.read(key) == message


def test_unknown_key(make_store):
    store = make_store()
    with pytest.raises(MessageNotFoundError) as exc_info:
        store.read("unknown")
    assert exc_info.value.key == "unknown"


def test_delete(make_store, message):
    store = make_store()
    key = store.write(message)
    store.delete(key)
    store.delete(key)
    with pytest.raises(MessageNotFoundError):
        store.read(key)


def test_keys_are_distinct(make_store, message):
    store = make_store()
    generated = [store.write(message) for _ in range(1000)]
    assert len(set(generated)) == 1000


def test_message_expires(make_store, message):
    clock = FakeClock()
    store = make_store(lifetime=60, clock=clock)
    key = store.write(message)

    clock.now += 59
    assert store.read(key) == message

    clock.now += 1
    with pytest.raises(MessageNotFoundError):
        store.read(key)


def test_key_collision_generates_new_key(make_store, message):
    store = make_store(generate_key=keys("a", "a", "b"))
    assert store.write(message) == "a"
    assert store.write(message) == "b"


class TestMemoryMessageStore:
    def test_entries(self, message):
        clock = FakeClock()
        store = MemoryMessageStore(clock=clock)
        key = store.write(message)

        entry = store.entries[key]
        assert entry.key == key
        assert entry.message == message
        assert entry.created_at == 1000.0

    def test_remove_expired(self, message):
        clock = FakeClock()
        store = MemoryMessageStore(lifetime=60, clock=clock)
        store.write(message)
        clock.now += 30
        key = store.write(message)

        clock.now += 30
        assert store.remove_expired() == 1
        assert list(store.entries) == [key]

    def test_write_purges_expired_entries(self, message):
        clock = FakeClock()
        store = MemoryMessageStore(lifetime=60, clock=clock, max_entries=1)
        store.write(message)
        with pytest.raises(StoreUnavailableError):
            store.write(message)

        clock.now += 60
        key = store.write(message)
        assert list(store.entries) == [key]

    def test_concurrent_writes(self, message):
        store = MemoryMessageStore()
        with ThreadPoolExecutor(max_workers=8) as executor:
            generated = list(executor.map(lambda _: store.write(message), range(1000)))

        assert len(set(generated)) == 1000
        assert len(store.entries) == 1000


class BrokenCache(SimpleCache):
    def add(self, key, value, timeout=None):
        raise OSError("connection refused")

    def get(self, key):
        raise OSError("connection refused")


class RefusingCache(SimpleCache):
    def add(self, key, value, timeout=None):
        return False


class TestCacheMessageStore:
    def test_stores_plain_data(self, message):
        cache = SimpleCache()
        store = CacheMessageStore(cache, key_prefix="lm:", clock=FakeClock())
        key = store.write(message)

        value = cache.get("lm:" + key)
        assert value == {"message": message.to_dict(), "created_at": 1000.0}

    def test_backend_error(self, message):
        store = CacheMessageStore(BrokenCache())
        with pytest.raises(StoreUnavailableError) as exc_info:
            store.write(message)
        assert isinstance(exc_info.value.__cause__, OSError)

        with pytest.raises(StoreUnavailableError):
            store.read("key")

    def test_refused_write(self, message):
        store = CacheMessageStore(RefusingCache())
        with pytest.raises(StoreUnavailableError):
            store.write(message)

    def test_empty_key(self):
        store = CacheMessageStore(SimpleCache())
        with pytest.raises(MessageNotFoundError):
            store.read("")


def test_logout_message_is_immutable(message):
    with pytest.raises(dataclasses.FrozenInstanceError):
        message.client_id = "other"

    message = LogoutMessage(client_id="client", parameters={"a": "b"})
    with pytest.raises(TypeError):
        message.parameters["a"] = "c"


def test_logout_message_is_hashable():
    a = LogoutMessage(client_id="client", client_ids=["a"], parameters={"x": ["y"]})
    b = LogoutMessage(client_id="client", client_ids=("a",), parameters={"x": ["y"]})
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


@pytest.mark.parametrize("lifetime", [0, -1])
def test_lifetime_must_be_positive(make_store, lifetime):
    with pytest.raises(ValueError, match="lifetime"):
        make_store(lifetime=lifetime)


@pytest.mark.parametrize("lifetime,timeout", [(0.5, 1), (1.9, 2), (60, 60)])
def test_cache_timeout_covers_lifetime(message, lifetime, timeout):
    class RecordingCache(SimpleCache):
        def add(self, key, value, timeout=None):
            self.timeout = timeout
            return super().add(key, value, timeout=timeout)

    cache = RecordingCache()
    store = CacheMessageStore(cache, lifetime=lifetime)
    key = store.write(message)

    assert cache.timeout == timeout
    assert cache.has(store.key_prefix + key)


def test_store_error_message():
    error = StoreUnavailableError(description="Message store is full")
    assert error.error == "store_unavailable"
    assert str(error) == "store_unavailable: Message store is full"
    assert repr(error) == '<StoreUnavailableError "store_unavailable">'
