import uuid

from ..extensions import db
from ..utils import isoformat, utcnow

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)


class Family(db.Model):
    __tablename__ = "families"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    members = db.relationship(
        "FamilyMember",
        back_populates="family",
        cascade="all, delete-orphan",
        order_by="FamilyMember.joined_at",
    )
    pets = db.relationship(
        "Pet",
        back_populates="family",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def to_dict_with_members(self) -> dict:
        data = self.to_dict()
        data["members"] = [m.to_dict(include_user=True) for m in self.members]
        return data


class FamilyMember(db.Model):
    __tablename__ = "family_members"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    family_id = db.Column(
        db.String(64),
        db.ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER)
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("family_id", "user_id", name="uq_family_member"),
        db.CheckConstraint("role IN ('admin', 'member')", name="ck_family_member_role"),
    )

    family = db.relationship("Family", back_populates="members")
    user = db.relationship("User", back_populates="memberships")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self, include_user: bool = False, include_family: bool = False) -> dict:
        data = {
            "id": self.id,
            "familyId": self.family_id,
            "userId": self.user_id,
            "role": self.role,
            "joinedAt": isoformat(self.joined_at),
        }
        if include_user:
            data["user"] = self.user.to_dict()
        if include_family:
            data["family"] = self.family.to_dict()
        return data
