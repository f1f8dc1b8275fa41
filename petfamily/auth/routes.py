import logging

from flask import Blueprint, jsonify, session
from flask_login import login_required, login_user, logout_user, current_user
from wtforms import StringField, PasswordField
from wtforms.fields import EmailField
from wtforms.validators import DataRequired, Email, Length

from ..errors import ApiError, Conflict, Unauthenticated, ValidationFailed
from ..extensions import db
from ..forms import JsonForm
from ..models.user import User
from .identity import SessionStore

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


class RegisterForm(JsonForm):
    email = EmailField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=8, max=256)])
    first_name = StringField("First name", validators=[DataRequired(), Length(max=120)])
    last_name = StringField("Last name", validators=[DataRequired(), Length(max=120)])


class LoginForm(JsonForm):
    email = EmailField("Email", validators=[DataRequired()])
    password = PasswordField("Password", validators=[DataRequired()])


def _start_session(user: User) -> None:
    session.permanent = True
    login_user(user)


def _missing_fields(form: JsonForm) -> bool:
    return any(not str(form.payload.get(name) or "").strip() for name in form._fields)


@auth_bp.post("/register")
def register():
    form = RegisterForm()
    if _missing_fields(form):
        raise ValidationFailed("All fields are required")
    form.validated()

    email = form.email.data.strip().lower()
    user = User.query.filter_by(email=email).first()
    # a federated account may add a password only from its own session
    if user is not None and (
        user.has_local_credential
        or not current_user.is_authenticated
        or current_user.id != user.id
    ):
        raise Conflict("Email is already registered", status_code=400)

    if user is None:
        user = User(email=email)
        db.session.add(user)
    user.first_name = form.first_name.data.strip()
    user.last_name = form.last_name.data.strip()
    user.set_password(form.password.data)
    db.session.commit()

    _start_session(user)
    logger.info("Registered user %s", user.id)
    return jsonify(user.to_dict()), 201


@auth_bp.post("/login")
def login():
    form = LoginForm()
    if _missing_fields(form):
        raise ValidationFailed("Email and password are required")
    form.validated()

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not user.check_password(form.password.data):
        logger.warning("Failed login attempt")
        raise Unauthenticated("Invalid credentials")

    _start_session(user)
    logger.info("User %s signed in", user.id)
    return jsonify(user.to_dict())


@auth_bp.post("/logout")
def logout():
    user_id = current_user.get_id() if current_user.is_authenticated else None
    try:
        logout_user()
        SessionStore().destroy()
    except Exception:
        logger.exception("Could not destroy session")
        raise ApiError("Logout failed")
    if user_id:
        logger.info("User %s signed out", user_id)
    return jsonify({"message": "Logged out"})


@auth_bp.get("/user")
@login_required
def get_user():
    return jsonify(current_user.to_dict())
