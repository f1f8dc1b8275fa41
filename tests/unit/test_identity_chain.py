import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from petfamily.auth.identity import (
    FederatedClaimResolver,
    IdentityResolver,
    SessionStore,
)


class _Fixed:
    def __init__(self, user):
        self.user = user
        self.calls = 0

    def resolve(self, store):
        self.calls += 1
        return self.user


def test_first_resolved_identity_wins():
    first, second = _Fixed("alice"), _Fixed("bob")
    chain = IdentityResolver([first, second])
    assert chain.resolve(SessionStore({})) == "alice"
    assert second.calls == 0


def test_passes_fall_through_to_next_resolver():
    chain = IdentityResolver([_Fixed(None), _Fixed("bob")])
    assert chain.resolve(SessionStore({})) == "bob"


def test_no_identity_is_a_result_not_an_error():
    chain = IdentityResolver([_Fixed(None), _Fixed(None)])
    assert chain.resolve(SessionStore({})) is None


def test_federated_resolver_passes_without_subject():
    resolver = FederatedClaimResolver("claims")
    assert resolver.resolve(SessionStore({})) is None
    assert resolver.resolve(SessionStore({"claims": {"email": "x@paws.io"}})) is None
    assert resolver.resolve(SessionStore({"claims": "garbage"})) is None


def test_session_store_get_set_destroy():
    backend = {}
    store = SessionStore(backend)
    store.set("_user_id", "42")
    assert store.get("_user_id") == "42"
    assert store.get("missing", "dflt") == "dflt"
    store.destroy()
    assert backend == {}
