from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from wtforms import StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from ..errors import Forbidden, NotFound, ValidationFailed
from ..extensions import db
from ..families.membership import require_member, require_pet_access
from ..forms import IsoDateTimeField, JsonForm
from ..models.pet import GENDERS, SPECIES, Pet
from ..objects.storage import (
    InvalidObjectPath,
    VISIBILITY_PUBLIC,
    get_storage,
    normalize_object_path,
)

pets_bp = Blueprint("pets", __name__)


class PetForm(JsonForm):
    family_id = StringField("Family", validators=[DataRequired(), Length(max=64)])
    name = StringField("Name", validators=[DataRequired(), Length(max=120)])
    species = StringField("Species", validators=[DataRequired(), AnyOf(SPECIES)])
    breed = StringField("Breed", validators=[Optional(), Length(max=120)])
    gender = StringField("Gender", validators=[Optional(), AnyOf(GENDERS)])
    birth_date = IsoDateTimeField("Birth date", validators=[Optional()])
    weight = StringField("Weight", validators=[Optional(), Length(max=50)])
    color = StringField("Color", validators=[Optional(), Length(max=80)])
    microchip = StringField("Microchip", validators=[Optional(), Length(max=80)])
    description = TextAreaField("Description", validators=[Optional()])
    vet_name = StringField("Vet name", validators=[Optional(), Length(max=120)])
    vet_clinic = StringField("Vet clinic", validators=[Optional(), Length(max=200)])
    allergies = TextAreaField("Allergies", validators=[Optional()])
    medications = TextAreaField("Medications", validators=[Optional()])
    location = StringField("Location", validators=[Optional(), Length(max=200)])


def _clean(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


@pets_bp.post("/api/pets")
@login_required
def create_pet():
    form = PetForm().validated()
    require_member(form.family_id.data, current_user)

    pet = Pet(family_id=form.family_id.data)
    for name in Pet.EDITABLE:
        setattr(pet, name, _clean(getattr(form, name).data))
    db.session.add(pet)
    db.session.commit()
    return jsonify(pet.to_dict()), 201


@pets_bp.get("/api/families/<family_id>/pets")
@login_required
def list_pets(family_id):
    require_member(family_id, current_user)
    pets = Pet.query.filter_by(family_id=family_id).order_by(Pet.name.asc()).all()
    return jsonify([p.to_dict() for p in pets])


@pets_bp.get("/api/pets/<pet_id>")
@login_required
def get_pet(pet_id):
    pet = require_pet_access(pet_id, current_user)
    return jsonify(pet.to_dict())


@pets_bp.put("/api/pets/<pet_id>")
@login_required
def update_pet(pet_id):
    pet = require_pet_access(pet_id, current_user)
    form = PetForm(partial=True).validated()
    for name, value in form.changes().items():
        if name in Pet.EDITABLE:
            setattr(pet, name, _clean(value))
    db.session.commit()
    return jsonify(pet.to_dict())


@pets_bp.delete("/api/pets/<pet_id>")
@login_required
def delete_pet(pet_id):
    pet = require_pet_access(pet_id, current_user)
    db.session.delete(pet)
    db.session.commit()
    return "", 204


@pets_bp.put("/api/pets/<pet_id>/image")
@login_required
def set_pet_image(pet_id):
    pet = require_pet_access(pet_id, current_user)
    body = request.get_json(silent=True) or {}
    image_url = body.get("imageURL") if isinstance(body, dict) else None
    if not isinstance(image_url, str) or not image_url:
        raise ValidationFailed("imageURL is required")

    try:
        object_path = normalize_object_path(image_url)
    except InvalidObjectPath:
        raise ValidationFailed("imageURL is not an uploaded object")

    storage = get_storage()
    if not storage.exists(object_path):
        raise NotFound("Uploaded object not found")
    owner = storage.get_acl(object_path).owner
    if owner and owner != current_user.id:
        raise Forbidden("Object belongs to another user")
    # pet profile images are shown on the public profile
    storage.set_acl(object_path, owner=current_user.id, visibility=VISIBILITY_PUBLIC)

    pet.profile_image_url = object_path
    db.session.commit()
    return jsonify({"pet": pet.to_dict(), "objectPath": object_path})
