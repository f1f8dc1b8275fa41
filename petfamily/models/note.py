import uuid

from ..extensions import db
from ..utils import isoformat, utcnow
from .pet import Pet

NOTE_DAILY = "daily"
NOTE_VETERINARY = "veterinary"
NOTE_TASK = "task"
NOTE_TYPES = (NOTE_DAILY, NOTE_VETERINARY, NOTE_TASK)

MOODS = ("very_happy", "happy", "normal", "sad", "sick")
FREQUENCIES = ("once", "daily", "weekly", "monthly", "yearly")

# type-specific columns; anything not listed for a note's type is blanked
TYPE_FIELDS = {
    NOTE_DAILY: ("mood",),
    NOTE_VETERINARY: ("vet_name", "vet_clinic", "medications", "vaccinations"),
    NOTE_TASK: ("due_date", "frequency", "completed"),
}
CONDITIONAL_FIELDS = tuple(f for fields in TYPE_FIELDS.values() for f in fields)


class Note(db.Model):
    __tablename__ = "notes"

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    pet_id = db.Column(
        db.String(64),
        db.ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    date = db.Column(db.DateTime, nullable=False, index=True)

    due_date = db.Column(db.DateTime, nullable=True)
    frequency = db.Column(db.String(20), nullable=True)
    completed = db.Column(db.Boolean, nullable=True, default=False)

    vet_name = db.Column(db.String(120), nullable=True)
    vet_clinic = db.Column(db.String(200), nullable=True)
    medications = db.Column(db.Text, nullable=True)
    vaccinations = db.Column(db.Text, nullable=True)

    mood = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint(
            "type IN ('daily', 'veterinary', 'task')", name="ck_note_type"
        ),
    )

    pet = db.relationship("Pet", back_populates="notes")
    author = db.relationship("User")

    EDITABLE = ("type", "title", "content", "date") + CONDITIONAL_FIELDS

    def apply_type_rules(self) -> None:
        keep = TYPE_FIELDS.get(self.type, ())
        for name in CONDITIONAL_FIELDS:
            if name in keep:
                continue
            setattr(self, name, None)
        if self.type == NOTE_TASK and self.completed is None:
            self.completed = False

    @classmethod
    def for_family(cls, family_id: str):
        return (
            cls.query.join(Pet, Pet.id == cls.pet_id)
            .filter(Pet.family_id == family_id)
            .order_by(cls.date.desc())
        )

    @classmethod
    def recent_for_family(cls, family_id: str, limit: int = 10):
        return cls.for_family(family_id).limit(limit).all()

    @classmethod
    def recent_for_pet(cls, pet_id: str, limit: int):
        return (
            cls.query.filter_by(pet_id=pet_id)
            .order_by(cls.date.desc())
            .limit(limit)
            .all()
        )

    def to_dict(self, include_author: bool = False, include_pet: bool = False) -> dict:
        data = {
            "id": self.id,
            "petId": self.pet_id,
            "authorId": self.author_id,
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "date": isoformat(self.date),
            "dueDate": isoformat(self.due_date),
            "frequency": self.frequency,
            "completed": self.completed,
            "vetName": self.vet_name,
            "vetClinic": self.vet_clinic,
            "medications": self.medications,
            "vaccinations": self.vaccinations,
            "mood": self.mood,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if include_author:
            data["author"] = self.author.to_dict()
        if include_pet:
            data["pet"] = self.pet.to_dict()
        return data
