from flask import Blueprint, jsonify, request, send_file
from flask_login import login_required, current_user
from sqlalchemy import or_

from ..errors import Forbidden, NotFound, Unauthenticated, ValidationFailed
from ..extensions import db
from ..models.family import FamilyMember
from ..models.pet import Pet
from ..models.pet_file import PetFile
from .storage import (
    AclPolicy,
    InvalidObjectPath,
    ObjectNotFoundError,
    VISIBILITY_PUBLIC,
    get_storage,
    normalize_object_path,
)

objects_bp = Blueprint("objects", __name__)


def _object_path(raw: str) -> str:
    try:
        return normalize_object_path("/objects/" + raw)
    except InvalidObjectPath:
        raise NotFound("Object not found")


def _shared_with(object_path: str, user_id: str) -> bool:
    """True if the object belongs to a pet of a family the user is in."""
    pet_ids = db.select(PetFile.pet_id).where(PetFile.file_path == object_path)
    return (
        Pet.query.join(FamilyMember, FamilyMember.family_id == Pet.family_id)
        .filter(
            FamilyMember.user_id == user_id,
            or_(Pet.profile_image_url == object_path, Pet.id.in_(pet_ids)),
        )
        .first()
        is not None
    )


def can_read(object_path: str, acl: AclPolicy, user_id: str) -> bool:
    return (
        acl.visibility == VISIBILITY_PUBLIC
        or acl.owner == user_id
        or _shared_with(object_path, user_id)
    )


@objects_bp.post("/api/objects/upload")
@login_required
def request_upload():
    return jsonify({"uploadURL": get_storage().new_upload_path()})


@objects_bp.put("/objects/<path:object_path>")
@login_required
def upload_object(object_path):
    storage = get_storage()
    path = _object_path(object_path)
    if storage.exists(path):
        acl = storage.get_acl(path)
        if acl.owner and acl.owner != current_user.id:
            raise Forbidden("Object belongs to another user")
    if request.content_length == 0:
        raise ValidationFailed("Empty upload")
    size = storage.save(
        path,
        request.stream,
        owner=current_user.id,
        content_type=request.mimetype or "application/octet-stream",
    )
    return jsonify({"objectPath": path, "size": size})


@objects_bp.get("/objects/<path:object_path>")
@login_required
def download_object(object_path):
    path = _object_path(object_path)
    try:
        file_path, acl = get_storage().open(path)
    except ObjectNotFoundError:
        raise NotFound("Object not found")

    if not can_read(path, acl, current_user.id):
        raise Unauthenticated()
    return send_file(file_path, mimetype=acl.content_type, max_age=3600)
