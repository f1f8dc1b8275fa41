from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from wtforms import IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional

from ..errors import Forbidden, NotFound, ValidationFailed
from ..extensions import db
from ..families.membership import require_pet_access
from ..forms import JsonForm
from ..models.pet_file import CATEGORIES, PetFile
from ..objects.routes import can_read
from ..objects.storage import (
    InvalidObjectPath,
    ObjectNotFoundError,
    get_storage,
    normalize_object_path,
)

files_bp = Blueprint("files", __name__)


class PetFileForm(JsonForm):
    pet_id = StringField("Pet", validators=[DataRequired(), Length(max=64)])
    file_name = StringField("File name", validators=[DataRequired(), Length(max=255)])
    file_type = StringField("File type", validators=[DataRequired(), Length(max=120)])
    file_size = IntegerField("File size", validators=[Optional(), NumberRange(min=0)])
    file_path = StringField("File path", validators=[DataRequired(), Length(max=512)])
    description = TextAreaField("Description", validators=[Optional()])
    category = StringField("Category", validators=[Optional(), AnyOf(CATEGORIES)])


def _get_file(file_id: str) -> PetFile:
    pet_file = db.session.get(PetFile, file_id)
    if pet_file is None:
        raise NotFound("File not found")
    require_pet_access(pet_file.pet_id, current_user)
    return pet_file


@files_bp.post("/api/pet-files")
@login_required
def create_pet_file():
    form = PetFileForm().validated()
    pet = require_pet_access(form.pet_id.data, current_user)
    try:
        file_path = normalize_object_path(form.file_path.data.strip())
    except InvalidObjectPath:
        raise ValidationFailed("filePath must point at an uploaded object")
    try:
        _, acl = get_storage().open(file_path)
    except ObjectNotFoundError:
        raise NotFound("Uploaded object not found")
    # attaching shares the object with the pet's family
    if not can_read(file_path, acl, current_user.id):
        raise Forbidden("Object belongs to another user")

    pet_file = PetFile(
        pet_id=pet.id,
        uploader_id=current_user.id,
        file_name=form.file_name.data.strip(),
        file_type=form.file_type.data.strip(),
        file_size=form.file_size.data,
        file_path=file_path,
        description=form.description.data,
        category=form.category.data,
    )
    db.session.add(pet_file)
    db.session.commit()
    return jsonify(pet_file.to_dict()), 201


@files_bp.get("/api/pets/<pet_id>/files")
@login_required
def list_pet_files(pet_id):
    require_pet_access(pet_id, current_user)
    files = (
        PetFile.query.filter_by(pet_id=pet_id)
        .order_by(PetFile.created_at.desc())
        .all()
    )
    return jsonify([f.to_dict() for f in files])


@files_bp.get("/api/pet-files/<file_id>")
@login_required
def get_pet_file(file_id):
    return jsonify(_get_file(file_id).to_dict())


@files_bp.delete("/api/pet-files/<file_id>")
@login_required
def delete_pet_file(file_id):
    pet_file = _get_file(file_id)
    db.session.delete(pet_file)
    db.session.commit()
    return "", 204
