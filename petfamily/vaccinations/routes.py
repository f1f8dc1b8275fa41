from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from ..errors import NotFound
from ..extensions import db
from ..families.membership import require_member, require_pet_access
from ..forms import IsoDateTimeField, JsonForm
from ..models.vaccination import Vaccination

vaccinations_bp = Blueprint("vaccinations", __name__)


class VaccinationForm(JsonForm):
    pet_id = StringField("Pet", validators=[DataRequired(), Length(max=64)])
    vaccine_name = StringField("Vaccine", validators=[DataRequired(), Length(max=200)])
    date_administered = IsoDateTimeField("Administered", validators=[DataRequired()])
    next_due_date = IsoDateTimeField("Next due", validators=[Optional()])
    vet_name = StringField("Vet name", validators=[Optional(), Length(max=120)])
    vet_clinic = StringField("Vet clinic", validators=[Optional(), Length(max=200)])
    notes = TextAreaField("Notes", validators=[Optional()])


def _get_vaccination(vaccination_id: str) -> Vaccination:
    vaccination = db.session.get(Vaccination, vaccination_id)
    if vaccination is None:
        raise NotFound("Vaccination not found")
    require_pet_access(vaccination.pet_id, current_user)
    return vaccination


@vaccinations_bp.post("/api/vaccinations")
@login_required
def create_vaccination():
    form = VaccinationForm().validated()
    pet = require_pet_access(form.pet_id.data, current_user)

    vaccination = Vaccination(pet_id=pet.id)
    for name in Vaccination.EDITABLE:
        setattr(vaccination, name, getattr(form, name).data)
    vaccination.vaccine_name = vaccination.vaccine_name.strip()
    db.session.add(vaccination)
    db.session.commit()
    return jsonify(vaccination.to_dict()), 201


@vaccinations_bp.get("/api/vaccinations/<vaccination_id>")
@login_required
def get_vaccination(vaccination_id):
    return jsonify(_get_vaccination(vaccination_id).to_dict())


@vaccinations_bp.get("/api/pets/<pet_id>/vaccinations")
@login_required
def list_pet_vaccinations(pet_id):
    require_pet_access(pet_id, current_user)
    rows = (
        Vaccination.query.filter_by(pet_id=pet_id)
        .order_by(Vaccination.date_administered.desc())
        .all()
    )
    return jsonify([v.to_dict() for v in rows])


@vaccinations_bp.get("/api/families/<family_id>/vaccinations/upcoming")
@login_required
def upcoming_vaccinations(family_id):
    require_member(family_id, current_user)
    rows = Vaccination.upcoming_for_family(family_id)
    return jsonify([v.to_dict(include_pet=True) for v in rows])


@vaccinations_bp.put("/api/vaccinations/<vaccination_id>")
@login_required
def update_vaccination(vaccination_id):
    vaccination = _get_vaccination(vaccination_id)
    form = VaccinationForm(partial=True).validated()
    for name, value in form.changes().items():
        if name == "vaccine_name":
            value = value.strip()
        if name in Vaccination.EDITABLE:
            setattr(vaccination, name, value)
    db.session.commit()
    return jsonify(vaccination.to_dict())


@vaccinations_bp.delete("/api/vaccinations/<vaccination_id>")
@login_required
def delete_vaccination(vaccination_id):
    vaccination = _get_vaccination(vaccination_id)
    db.session.delete(vaccination)
    db.session.commit()
    return "", 204
