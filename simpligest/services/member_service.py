import json
import logging

from sqlalchemy import select

from simpligest.core.permissions import ROLE_KEYS, allowed_pages, merge_permissions
from simpligest.core.dates import utc_now
from simpligest.core.security import issue_member_token
from simpligest.models.role_assignment import RoleAssignment

logger = logging.getLogger(__name__)

MEMBER_STATUSES = ("active", "invited", "disabled")


def _load_overrides(assignment) -> dict:
    if not assignment.overrides:
        return {}
    try:
        return json.loads(assignment.overrides)
    except ValueError:
        return {}


def get_assignment(db, user_id):
    stmt = select(RoleAssignment).where(RoleAssignment.user_id == str(user_id))
    return db.execute(stmt).scalars().first()


def assign_role(db, user_id, role, overrides=None, *, email=None, assigned_by=None) -> RoleAssignment:
    if not user_id:
        raise ValueError("user_id is required")
    if role not in ROLE_KEYS:
        raise ValueError("role must be one of: {}".format(", ".join(ROLE_KEYS)))
    cleaned = {key: value for key, value in (overrides or {}).items() if value is not None}
    # validates the permission keys
    merge_permissions(role, cleaned)

    assignment = get_assignment(db, user_id)
    if assignment is None:
        assignment = RoleAssignment(user_id=str(user_id))
        db.add(assignment)
    assignment.role = role
    assignment.overrides = json.dumps(cleaned)
    if email is not None:
        assignment.email = email
    assignment.assigned_by = assigned_by
    assignment.updated_at = utc_now()
    db.flush()
    logger.info("Assigned role %s to user %s", role, user_id)
    return assignment


def set_member_status(db, user_id, status) -> RoleAssignment:
    if status not in MEMBER_STATUSES:
        raise ValueError("status must be one of: {}".format(", ".join(MEMBER_STATUSES)))
    assignment = get_assignment(db, user_id)
    if assignment is None:
        raise LookupError("Member not found")
    assignment.status = status
    assignment.updated_at = utc_now()
    db.flush()
    return assignment


def get_permissions_for(db, user_id) -> dict:
    """Effective permissions for a user; unknown or disabled users get none."""
    assignment = get_assignment(db, user_id) if user_id else None
    if assignment is None or assignment.status == "disabled":
        return {key: False for key in merge_permissions("admin")}
    return merge_permissions(assignment.role, _load_overrides(assignment))


def issue_token_for_member(db, user_id, settings=None) -> str:
    """Sign a bearer token for an existing, non-disabled member."""
    assignment = get_assignment(db, user_id)
    if assignment is None:
        raise LookupError("Member not found")
    if assignment.status == "disabled":
        raise ValueError("Member is disabled")
    token = issue_member_token(assignment.user_id, assignment.email, settings=settings)
    logger.info("Issued token for member %s", assignment.user_id)
    return token


def list_members(db) -> list:
    stmt = select(RoleAssignment).order_by(RoleAssignment.user_id)
    return list(db.execute(stmt).scalars().all())


def serialize_member(assignment) -> dict:
    permissions = merge_permissions(assignment.role, _load_overrides(assignment))
    return {
        "user_id": assignment.user_id,
        "email": assignment.email,
        "role": assignment.role,
        "status": assignment.status,
        "permissions": permissions,
        "allowed_pages": sorted(allowed_pages(permissions)),
        "assigned_by": assignment.assigned_by,
        "updated_at": assignment.updated_at,
    }


__all__ = [
    "MEMBER_STATUSES",
    "assign_role",
    "get_assignment",
    "get_permissions_for",
    "issue_token_for_member",
    "list_members",
    "serialize_member",
    "set_member_status",
]
