import uuid

from ..extensions import db
from ..utils import isoformat, utcnow

CATEGORIES = ("medical", "photo", "document", "vaccination")


class PetFile(db.Model):
    __tablename__ = "pet_files"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    pet_id = db.Column(
        db.String(64),
        db.ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploader_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    file_name = db.Column(db.String(255), nullable=False)
    file_type = db.Column(db.String(120), nullable=False)
    file_size = db.Column(db.Integer, nullable=True)
    file_path = db.Column(db.String(512), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.CheckConstraint(
            "file_size IS NULL OR file_size >= 0", name="ck_pet_file_size_non_negative"
        ),
    )

    pet = db.relationship("Pet", back_populates="files")
    uploader = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "petId": self.pet_id,
            "uploaderId": self.uploader_id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "filePath": self.file_path,
            "description": self.description,
            "category": self.category,
            "createdAt": isoformat(self.created_at),
        }
