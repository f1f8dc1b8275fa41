from flask import Blueprint, jsonify

from ..errors import NotFound
from ..extensions import db
from ..models.note import Note
from ..models.pet import Pet
from ..models.pet_file import PetFile
from ..models.vaccination import Vaccination

public_bp = Blueprint("public", __name__)

PUBLIC_NOTES_LIMIT = 5


@public_bp.get("/public/pet/<pet_id>")
def public_pet(pet_id):
    # shared by link/QR; no login and no family check
    pet = db.session.get(Pet, pet_id)
    if pet is None:
        raise NotFound("Pet not found")

    files = PetFile.query.filter_by(pet_id=pet.id).order_by(PetFile.created_at.desc()).all()
    notes = Note.recent_for_pet(pet.id, PUBLIC_NOTES_LIMIT)
    vaccinations = (
        Vaccination.query.filter_by(pet_id=pet.id)
        .order_by(Vaccination.date_administered.desc())
        .all()
    )
    return jsonify(
        {
            "pet": pet.to_public_dict(),
            "files": [f.to_dict() for f in files],
            "notes": [n.to_dict() for n in notes],
            "vaccinations": [v.to_dict() for v in vaccinations],
        }
    )
