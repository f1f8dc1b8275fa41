import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from petfamily.models import family, note, pet, pet_file, vaccination  # noqa: F401  mapper registry
from petfamily.models.user import User


def test_hash_is_salted_per_credential():
    a, b = User(), User()
    a.set_password("same-secret")
    b.set_password("same-secret")
    assert a.password_hash != b.password_hash
    assert a.check_password("same-secret") and b.check_password("same-secret")


def test_other_plaintexts_fail():
    user = User()
    user.set_password("same-secret")
    for attempt in ("", "same-secreT", "same-secret ", "other"):
        assert not user.check_password(attempt)


def test_federated_account_has_no_local_credential():
    user = User(id="oidc|1")
    assert not user.has_local_credential
    assert not user.check_password("anything")
