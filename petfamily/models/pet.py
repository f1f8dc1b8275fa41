import uuid

from ..extensions import db
from ..utils import isoformat, utcnow

SPECIES = ("dog", "cat", "bird", "rabbit", "hamster", "fish", "reptile", "other")
GENDERS = ("male", "female")


class Pet(db.Model):
    __tablename__ = "pets"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    family_id = db.Column(
        db.String(64),
        db.ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(120), nullable=False)
    species = db.Column(db.String(50), nullable=False)
    breed = db.Column(db.String(120), nullable=True)
    gender = db.Column(db.String(20), nullable=True)
    birth_date = db.Column(db.DateTime, nullable=True)
    weight = db.Column(db.String(50), nullable=True)
    color = db.Column(db.String(80), nullable=True)
    microchip = db.Column(db.String(80), nullable=True)
    description = db.Column(db.Text, nullable=True)
    profile_image_url = db.Column(db.String(512), nullable=True)
    vet_name = db.Column(db.String(120), nullable=True)
    vet_clinic = db.Column(db.String(200), nullable=True)
    allergies = db.Column(db.Text, nullable=True)
    medications = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(200), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    family = db.relationship("Family", back_populates="pets")
    notes = db.relationship("Note", back_populates="pet", cascade="all, delete-orphan")
    files = db.relationship("PetFile", back_populates="pet", cascade="all, delete-orphan")
    vaccinations = db.relationship(
        "Vaccination",
        back_populates="pet",
        cascade="all, delete-orphan",
    )

    # columns a client may write; family_id is fixed at creation
    EDITABLE = (
        "name",
        "species",
        "breed",
        "gender",
        "birth_date",
        "weight",
        "color",
        "microchip",
        "description",
        "vet_name",
        "vet_clinic",
        "allergies",
        "medications",
        "location",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "familyId": self.family_id,
            "name": self.name,
            "species": self.species,
            "breed": self.breed,
            "gender": self.gender,
            "birthDate": isoformat(self.birth_date),
            "weight": self.weight,
            "color": self.color,
            "microchip": self.microchip,
            "description": self.description,
            "profileImageUrl": self.profile_image_url,
            "vetName": self.vet_name,
            "vetClinic": self.vet_clinic,
            "allergies": self.allergies,
            "medications": self.medications,
            "location": self.location,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        data = self.to_dict()
        data.pop("familyId")
        return data
