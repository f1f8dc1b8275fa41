from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from wtforms import BooleanField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from ..errors import NotFound, ValidationFailed
from ..extensions import db
from ..families.membership import require_member, require_pet_access
from ..forms import IsoDateTimeField, JsonForm
from ..models.note import FREQUENCIES, MOODS, NOTE_TYPES, Note

notes_bp = Blueprint("notes", __name__)

DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 100


class NoteForm(JsonForm):
    pet_id = StringField("Pet", validators=[DataRequired(), Length(max=64)])
    type = StringField("Type", validators=[DataRequired(), AnyOf(NOTE_TYPES)])
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    content = TextAreaField("Content", validators=[DataRequired()])
    date = IsoDateTimeField("Date", validators=[DataRequired()])

    due_date = IsoDateTimeField("Due date", validators=[Optional()])
    frequency = StringField("Frequency", validators=[Optional(), AnyOf(FREQUENCIES)])
    completed = BooleanField("Completed", validators=[Optional()])

    vet_name = StringField("Vet name", validators=[Optional(), Length(max=120)])
    vet_clinic = StringField("Vet clinic", validators=[Optional(), Length(max=200)])
    medications = TextAreaField("Medications", validators=[Optional()])
    vaccinations = TextAreaField("Vaccinations", validators=[Optional()])

    mood = StringField("Mood", validators=[Optional(), AnyOf(MOODS)])


def _get_note(note_id: str) -> Note:
    note = db.session.get(Note, note_id)
    if note is None:
        raise NotFound("Note not found")
    require_pet_access(note.pet_id, current_user)
    return note


def _limit_arg() -> int:
    raw = request.args.get("limit")
    if raw is None:
        return DEFAULT_RECENT_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        raise ValidationFailed("limit must be a positive integer")
    if limit < 1:
        raise ValidationFailed("limit must be a positive integer")
    return min(limit, MAX_RECENT_LIMIT)


@notes_bp.post("/api/notes")
@login_required
def create_note():
    form = NoteForm().validated()
    pet = require_pet_access(form.pet_id.data, current_user)

    note = Note(pet_id=pet.id, author_id=current_user.id)
    for name in Note.EDITABLE:
        value = getattr(form, name).data
        if name == "completed" and "completed" not in form.payload:
            value = None
        setattr(note, name, value)
    note.apply_type_rules()
    db.session.add(note)
    db.session.commit()
    return jsonify(note.to_dict(include_author=True)), 201


@notes_bp.get("/api/notes/<note_id>")
@login_required
def get_note(note_id):
    note = _get_note(note_id)
    return jsonify(note.to_dict(include_author=True))


@notes_bp.get("/api/pets/<pet_id>/notes")
@login_required
def list_pet_notes(pet_id):
    require_pet_access(pet_id, current_user)
    notes = Note.query.filter_by(pet_id=pet_id).order_by(Note.date.desc()).all()
    return jsonify([n.to_dict(include_author=True) for n in notes])


@notes_bp.get("/api/families/<family_id>/notes")
@login_required
def list_family_notes(family_id):
    require_member(family_id, current_user)
    notes = Note.for_family(family_id).all()
    return jsonify([n.to_dict(include_author=True, include_pet=True) for n in notes])


@notes_bp.get("/api/families/<family_id>/notes/recent")
@login_required
def recent_family_notes(family_id):
    require_member(family_id, current_user)
    notes = Note.recent_for_family(family_id, _limit_arg())
    return jsonify([n.to_dict(include_author=True, include_pet=True) for n in notes])


@notes_bp.put("/api/notes/<note_id>")
@login_required
def update_note(note_id):
    note = _get_note(note_id)
    form = NoteForm(partial=True).validated()
    for name, value in form.changes().items():
        if name in Note.EDITABLE:
            setattr(note, name, value)
    note.apply_type_rules()
    db.session.commit()
    return jsonify(note.to_dict(include_author=True))


@notes_bp.delete("/api/notes/<note_id>")
@login_required
def delete_note(note_id):
    note = _get_note(note_id)
    db.session.delete(note)
    db.session.commit()
    return "", 204
