import uuid

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from ..extensions import db
from ..utils import isoformat, utcnow

# memory-hard, salted; werkzeug compares with hmac.compare_digest
PASSWORD_METHOD = "scrypt"


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    # nullable for federated-only accounts
    email = db.Column(db.String(255), nullable=True, unique=True, index=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    profile_image_url = db.Column(db.String(512), nullable=True)
    password_hash = db.Column(db.String(256), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    memberships = db.relationship(
        "FamilyMember",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def has_local_credential(self) -> bool:
        return bool(self.password_hash)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password, method=PASSWORD_METHOD)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "profileImageUrl": self.profile_image_url,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
