"""Family membership rules.

Every family-scoped route goes through ``require_member`` (or
``require_admin``) before touching data. Writes that change who belongs to a
family live here so the invariants stay in one place:

* a (family, user) pair appears at most once (unique constraint);
* creating a family and its first admin membership is one commit;
* an admin cannot leave while anyone else is still in the family.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..errors import AdminLeaveBlocked, Conflict, Forbidden, NotFound, ValidationFailed
from ..extensions import db
from ..models.family import Family, FamilyMember, ROLE_ADMIN, ROLE_MEMBER, ROLES
from ..models.pet import Pet
from ..models.user import User

logger = logging.getLogger(__name__)


def create_family(name: str, description: Optional[str], creator: User) -> Family:
    family = Family(name=name, description=description)
    family.members.append(FamilyMember(user_id=creator.id, role=ROLE_ADMIN))
    db.session.add(family)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("User %s created family %s", creator.id, family.id)
    return family


def get_family_or_404(family_id: str) -> Family:
    family = db.session.get(Family, family_id)
    if family is None:
        raise NotFound("Family not found")
    return family


def list_families_for(user: User) -> list[FamilyMember]:
    return (
        FamilyMember.query.join(Family, Family.id == FamilyMember.family_id)
        .filter(FamilyMember.user_id == user.id)
        .order_by(FamilyMember.joined_at.asc())
        .all()
    )


def get_membership(family_id: str, user_id: str) -> Optional[FamilyMember]:
    return FamilyMember.query.filter_by(family_id=family_id, user_id=user_id).first()


def count_members(family_id: str) -> int:
    return FamilyMember.query.filter_by(family_id=family_id).count()


def count_admins(family_id: str) -> int:
    return FamilyMember.query.filter_by(family_id=family_id, role=ROLE_ADMIN).count()


def _check_role(role: str) -> str:
    if role not in ROLES:
        raise ValidationFailed(f"Role must be one of: {', '.join(ROLES)}")
    return role


def add_member(family_id: str, user: User, role: str = ROLE_MEMBER) -> FamilyMember:
    get_family_or_404(family_id)
    _check_role(role)
    member = FamilyMember(family_id=family_id, user_id=user.id, role=role)
    db.session.add(member)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("User is already a member of this family")
    logger.info("Added user %s to family %s as %s", user.id, family_id, role)
    return member


def update_member_role(family_id: str, user_id: str, role: str) -> FamilyMember:
    _check_role(role)
    member = get_membership(family_id, user_id)
    if member is None:
        raise NotFound("Member not found")
    if member.is_admin and role != ROLE_ADMIN and count_admins(family_id) == 1:
        raise ValidationFailed("A family with members needs at least one admin")
    member.role = role
    db.session.commit()
    logger.info("User %s is now %s of family %s", user_id, role, family_id)
    return member


def remove_member(family_id: str, user_id: str) -> None:
    member = get_membership(family_id, user_id)
    if member is None:
        raise NotFound("Member not found")
    db.session.delete(member)
    db.session.commit()
    logger.info("Removed user %s from family %s", user_id, family_id)


def leave_family(family_id: str, user: User) -> None:
    member = get_membership(family_id, user.id)
    if member is None:
        raise NotFound("You are not a member of this family")
    if member.is_admin and count_members(family_id) > 1:
        raise AdminLeaveBlocked()
    db.session.delete(member)
    db.session.commit()
    logger.info("User %s left family %s", user.id, family_id)


def delete_family(family_id: str) -> None:
    family = get_family_or_404(family_id)
    db.session.delete(family)
    db.session.commit()
    logger.info("Deleted family %s", family_id)


def require_member(family_id: str, user: User) -> FamilyMember:
    get_family_or_404(family_id)
    member = get_membership(family_id, user.id)
    if member is None:
        raise Forbidden("You are not a member of this family")
    return member


def require_admin(family_id: str, user: User) -> FamilyMember:
    member = require_member(family_id, user)
    if not member.is_admin:
        raise Forbidden("Only family admins can do this")
    return member


def require_pet_access(pet_id: str, user: User) -> Pet:
    pet = db.session.get(Pet, pet_id)
    if pet is None:
        raise NotFound("Pet not found")
    require_member(pet.family_id, user)
    return pet


def is_member(family_id: str, user_id: str) -> bool:
    return get_membership(family_id, user_id) is not None
