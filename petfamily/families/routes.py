from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from wtforms import StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Email, Length, Optional

from ..errors import NotFound, ValidationFailed
from ..extensions import db
from ..forms import JsonForm
from ..models.family import ROLE_MEMBER, ROLES
from ..models.user import User
from . import membership
from .invite import build_invite, qr_data_url

families_bp = Blueprint("families", __name__)


class FamilyForm(JsonForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])


class AddMemberForm(JsonForm):
    user_id = StringField("User", validators=[Optional(), Length(max=64)])
    email = StringField("Email", validators=[Optional(), Email()])
    role = StringField("Role", validators=[Optional(), AnyOf(ROLES)])


class RoleForm(JsonForm):
    role = StringField("Role", validators=[DataRequired(), AnyOf(ROLES)])


@families_bp.post("/api/families")
@login_required
def create_family():
    form = FamilyForm().validated()
    family = membership.create_family(
        form.name.data.strip(), form.description.data, current_user
    )
    return jsonify(family.to_dict()), 201


@families_bp.get("/api/families")
@login_required
def list_families():
    rows = membership.list_families_for(current_user)
    return jsonify([m.to_dict(include_family=True) for m in rows])


@families_bp.get("/api/families/<family_id>")
@login_required
def get_family(family_id):
    membership.require_member(family_id, current_user)
    family = membership.get_family_or_404(family_id)
    return jsonify(family.to_dict_with_members())


@families_bp.delete("/api/families/<family_id>")
@login_required
def delete_family(family_id):
    membership.require_admin(family_id, current_user)
    membership.delete_family(family_id)
    return "", 204


@families_bp.post("/api/families/<family_id>/members")
@login_required
def add_member(family_id):
    membership.require_admin(family_id, current_user)
    form = AddMemberForm().validated()

    if form.user_id.data:
        user = db.session.get(User, form.user_id.data)
    elif form.email.data:
        user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    else:
        raise ValidationFailed("userId or email is required")
    if user is None:
        raise NotFound("User not found")

    member = membership.add_member(family_id, user, form.role.data or ROLE_MEMBER)
    return jsonify(member.to_dict(include_user=True)), 201


@families_bp.patch("/api/families/<family_id>/members/<user_id>")
@login_required
def update_member_role(family_id, user_id):
    membership.require_admin(family_id, current_user)
    form = RoleForm().validated()
    member = membership.update_member_role(family_id, user_id, form.role.data)
    return jsonify(member.to_dict())


@families_bp.delete("/api/families/<family_id>/members/me")
@login_required
def leave_family(family_id):
    membership.get_family_or_404(family_id)
    membership.leave_family(family_id, current_user)
    return jsonify({"message": "You left the family"})


@families_bp.delete("/api/families/<family_id>/members/<user_id>")
@login_required
def remove_member(family_id, user_id):
    if user_id == current_user.id:
        return leave_family(family_id)
    membership.require_admin(family_id, current_user)
    membership.remove_member(family_id, user_id)
    return "", 204


@families_bp.get("/api/families/<family_id>/qr")
@login_required
def family_qr(family_id):
    membership.require_member(family_id, current_user)
    family = membership.get_family_or_404(family_id)
    invite = build_invite(family)
    return jsonify({"qrCode": qr_data_url(invite), "inviteData": invite})
