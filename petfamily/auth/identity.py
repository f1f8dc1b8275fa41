"""Request identity resolution.

Two credential sources can identify a caller: claims placed in the session by
an external federated-identity layer, and the user id Flask-Login stores when
a local email/password login succeeds. ``IdentityResolver`` asks each source
in order and the first one that produces a user wins.
"""
from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Iterable, Optional, Protocol

from flask import current_app, session
from sqlalchemy.exc import IntegrityError

from ..extensions import db, login_manager
from ..models.user import User

logger = logging.getLogger(__name__)

# key Flask-Login writes in login_user()
LOCAL_USER_KEY = "_user_id"


class SessionStore:
    """get/set/destroy access to the session of the current request.

    Defaults to Flask's ``session``; any mutable mapping can stand in.
    """

    def __init__(self, backend: Optional[MutableMapping] = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> MutableMapping:
        return self._backend if self._backend is not None else session

    def get(self, key: str, default: Any = None) -> Any:
        return self.backend.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.backend[key] = value

    def destroy(self) -> None:
        self.backend.clear()


class Resolver(Protocol):
    def resolve(self, store: SessionStore) -> Optional[User]: ...


def _claim(claims: dict, *names: str) -> Optional[str]:
    for name in names:
        value = claims.get(name)
        if value:
            return value
    return None


def upsert_federated_user(claims: dict) -> User:
    """Insert the user for ``claims["sub"]`` or refresh its profile fields."""
    subject = str(claims["sub"])
    profile = {
        "email": (_claim(claims, "email") or "").strip().lower() or None,
        "first_name": _claim(claims, "first_name", "firstName", "given_name"),
        "last_name": _claim(claims, "last_name", "lastName", "family_name"),
        "profile_image_url": _claim(
            claims, "profile_image_url", "profileImageUrl", "picture"
        ),
    }
    email = profile["email"]
    if email and User.query.filter(User.email == email, User.id != subject).first():
        logger.warning("Email of federated subject %s belongs to another account", subject)
        profile["email"] = None

    user = db.session.get(User, subject)
    if user is None:
        user = User(id=subject, **profile)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            # concurrent first login for the same subject
            db.session.rollback()
            user = db.session.get(User, subject)
            if user is None:
                raise
        else:
            logger.info("Created federated user %s", subject)
            return user

    changed = False
    for attr, value in profile.items():
        if value is not None and getattr(user, attr) != value:
            setattr(user, attr, value)
            changed = True
    if changed:
        db.session.commit()
    return user


class FederatedClaimResolver:
    def __init__(self, claims_key: str = "claims") -> None:
        self.claims_key = claims_key

    def resolve(self, store: SessionStore) -> Optional[User]:
        claims = store.get(self.claims_key)
        if not isinstance(claims, dict) or not claims.get("sub"):
            return None
        return upsert_federated_user(claims)


class LocalSessionResolver:
    def resolve(self, store: SessionStore) -> Optional[User]:
        user_id = store.get(LOCAL_USER_KEY)
        if not user_id:
            return None
        return db.session.get(User, str(user_id))


class IdentityResolver:
    def __init__(self, resolvers: Iterable[Resolver]) -> None:
        self.resolvers = list(resolvers)

    def resolve(self, store: SessionStore) -> Optional[User]:
        for resolver in self.resolvers:
            user = resolver.resolve(store)
            if user is not None:
                return user
        return None


def default_resolver(claims_key: str) -> IdentityResolver:
    return IdentityResolver([FederatedClaimResolver(claims_key), LocalSessionResolver()])


def _current_resolver() -> IdentityResolver:
    return current_app.extensions["identity_resolver"]


@login_manager.user_loader
def load_user(user_id: str):
    return _current_resolver().resolve(SessionStore())


@login_manager.request_loader
def load_user_from_request(_request):
    return _current_resolver().resolve(SessionStore())
