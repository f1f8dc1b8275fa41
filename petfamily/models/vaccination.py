import uuid
from datetime import datetime
from typing import Optional

from ..extensions import db
from ..utils import isoformat, utcnow
from .pet import Pet


class Vaccination(db.Model):
    __tablename__ = "vaccinations"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    pet_id = db.Column(
        db.String(64),
        db.ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    vaccine_name = db.Column(db.String(200), nullable=False)
    date_administered = db.Column(db.DateTime, nullable=False)
    next_due_date = db.Column(db.DateTime, nullable=True, index=True)
    vet_name = db.Column(db.String(120), nullable=True)
    vet_clinic = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    pet = db.relationship("Pet", back_populates="vaccinations")

    EDITABLE = (
        "vaccine_name",
        "date_administered",
        "next_due_date",
        "vet_name",
        "vet_clinic",
        "notes",
    )

    @classmethod
    def upcoming_for_family(cls, family_id: str, now: Optional[datetime] = None):
        """Vaccinations whose next dose is strictly in the future, soonest first."""
        now = now or utcnow()
        return (
            cls.query.join(Pet, Pet.id == cls.pet_id)
            .filter(
                Pet.family_id == family_id,
                cls.next_due_date.isnot(None),
                cls.next_due_date > now,
            )
            .order_by(cls.next_due_date.asc())
            .all()
        )

    def to_dict(self, include_pet: bool = False) -> dict:
        data = {
            "id": self.id,
            "petId": self.pet_id,
            "vaccineName": self.vaccine_name,
            "dateAdministered": isoformat(self.date_administered),
            "nextDueDate": isoformat(self.next_due_date),
            "vetName": self.vet_name,
            "vetClinic": self.vet_clinic,
            "notes": self.notes,
            "createdAt": isoformat(self.created_at),
        }
        if include_pet:
            data["pet"] = self.pet.to_dict()
        return data
