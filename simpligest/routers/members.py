from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.core.permissions import PERMISSION_LABELS, ROLE_DEFINITIONS, allowed_pages
from simpligest.dependencies import (
    get_db,
    raise_for_domain_error,
    require_auth,
    require_permission,
    resolve_permissions,
)
from simpligest.schemas.member import (
    MemberRead,
    MemberStatusRequest,
    MemberTokenRead,
    RoleAssignmentRequest,
)
from simpligest.services.member_service import (
    assign_role,
    issue_token_for_member,
    list_members,
    serialize_member,
    set_member_status,
)

router = APIRouter(prefix="/members", tags=["Members"])


@router.get("/roles")
def get_roles():
    return {
        "permissions": PERMISSION_LABELS,
        "roles": [
            {
                "key": role.key,
                "name": role.name,
                "description": role.description,
                "permissions": role.permissions,
            }
            for role in ROLE_DEFINITIONS
        ],
    }


@router.get("/me")
def get_my_permissions(db: Session = Depends(get_db), auth: Optional[dict] = Depends(require_auth)):
    permissions = resolve_permissions(db, auth)
    return {
        "user_id": auth.get("user_id") if auth else None,
        "permissions": permissions,
        "allowed_pages": sorted(allowed_pages(permissions)),
    }


@router.get("", response_model=List[MemberRead])
def get_members(db: Session = Depends(get_db), _auth=Depends(require_permission("manage_users"))):
    return [serialize_member(assignment) for assignment in list_members(db)]


@router.put("/{user_id}/role", response_model=MemberRead)
def put_member_role(
    user_id: str,
    payload: RoleAssignmentRequest,
    db: Session = Depends(get_db),
    auth: Optional[dict] = Depends(require_permission("manage_users")),
):
    try:
        assignment = assign_role(
            db,
            user_id,
            payload.role,
            payload.overrides,
            email=payload.email,
            assigned_by=auth.get("user_id") if auth else None,
        )
        db.commit()
    except ValueError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return serialize_member(assignment)


@router.put("/{user_id}/status", response_model=MemberRead)
def put_member_status(
    user_id: str,
    payload: MemberStatusRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_users")),
):
    try:
        assignment = set_member_status(db, user_id, payload.status)
        db.commit()
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return serialize_member(assignment)


@router.post("/{user_id}/token", response_model=MemberTokenRead)
def post_member_token(
    user_id: str,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_users")),
):
    try:
        token = issue_token_for_member(db, user_id)
    except (LookupError, ValueError, RuntimeError) as exc:
        raise_for_domain_error(exc)
    return {"user_id": user_id, "access_token": token}
