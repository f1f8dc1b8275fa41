import os
import sys
from datetime import timedelta

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from petfamily import create_app
from petfamily.extensions import db
from petfamily.families import membership
from petfamily.models.user import User
from petfamily.models.pet import Pet
from petfamily.models.note import Note
from petfamily.models.vaccination import Vaccination
from petfamily.utils import utcnow

PASSWORD = "correct-horse"


def _assert_memory_db(uri: str):
    if uri != "sqlite:///:memory:":
        raise RuntimeError(
            f"Refusing to run tests on non-memory DB: {uri!r}. "
            "This guard protects your real database."
        )


@pytest.fixture(scope="function")
def app(tmp_path):
    os.environ["FLASK_ENV"] = "testing"
    os.environ.pop("DATABASE_URL", None)

    flask_app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "PRIVATE_OBJECT_DIR": str(tmp_path / "objects"),
            "LOG_LEVEL": "WARNING",
        }
    )

    _assert_memory_db(flask_app.config["SQLALCHEMY_DATABASE_URI"])

    # requests push their own app context, so g and the session are per request
    with flask_app.app_context():
        db.create_all()
    yield flask_app
    _assert_memory_db(flask_app.config["SQLALCHEMY_DATABASE_URI"])
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def make_user(app):
    def _make_user(email: str, first_name: str = "Test", last_name: str = "User") -> str:
        with app.app_context():
            u = User(email=email, first_name=first_name, last_name=last_name)
            u.set_password(PASSWORD)
            db.session.add(u)
            db.session.commit()
            return u.id
    return _make_user

@pytest.fixture()
def login_as(client, app):
    def _login_as(user_id: str):
        with client.session_transaction() as sess:
            sess["_user_id"] = user_id
            sess["_fresh"] = True
    return _login_as


@pytest.fixture()
def set_claims(client):
    def _set_claims(claims: dict):
        with client.session_transaction() as sess:
            sess["claims"] = claims
    return _set_claims


@pytest.fixture()
def sample_data(app, make_user):
    """Two families: Rivera (admin + member, one pet) and Stone (outsider)."""
    admin_id = make_user("ana@paws.io", "Ana", "Rivera")
    member_id = make_user("leo@paws.io", "Leo", "Rivera")
    outsider_id = make_user("sam@paws.io", "Sam", "Stone")

    with app.app_context():
        admin = db.session.get(User, admin_id)
        family = membership.create_family("Rivera", "Dogs and cats", admin)
        membership.add_member(family.id, db.session.get(User, member_id))
        other = membership.create_family("Stone", None, db.session.get(User, outsider_id))

        pet = Pet(family_id=family.id, name="Bruno", species="dog", breed="Beagle")
        db.session.add(pet)
        db.session.commit()

        return {
            "admin": admin_id,
            "member": member_id,
            "outsider": outsider_id,
            "family": family.id,
            "other_family": other.id,
            "pet": pet.id,
        }


@pytest.fixture()
def add_note(app):
    def _add_note(pet_id: str, author_id: str, days_ago: int, **fields) -> str:
        fields.setdefault("type", "daily")
        fields.setdefault("title", f"Note {days_ago}")
        fields.setdefault("content", "Text")
        with app.app_context():
            note = Note(
                pet_id=pet_id,
                author_id=author_id,
                date=utcnow() - timedelta(days=days_ago),
                **fields,
            )
            db.session.add(note)
            db.session.commit()
            return note.id
    return _add_note


@pytest.fixture()
def add_vaccination(app):
    def _add_vaccination(pet_id: str, name: str, due_in_days=None) -> str:
        now = utcnow()
        due = now + timedelta(days=due_in_days) if due_in_days is not None else None
        with app.app_context():
            v = Vaccination(
                pet_id=pet_id,
                vaccine_name=name,
                date_administered=now - timedelta(days=30),
                next_due_date=due,
            )
            db.session.add(v)
            db.session.commit()
            return v.id
    return _add_vaccination


@pytest.fixture()
def upload(client):
    """Upload bytes as the logged-in user and return the object path."""
    def _upload(body: bytes = b"%PDF-1.4 test", content_type: str = "application/pdf") -> str:
        url = client.post("/api/objects/upload").get_json()["uploadURL"]
        rv = client.put(url, data=body, content_type=content_type)
        assert rv.status_code == 200
        return url
    return _upload
