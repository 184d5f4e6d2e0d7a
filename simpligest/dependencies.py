from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from simpligest.config import get_settings
from simpligest.core.permissions import PERMISSION_KEYS, merge_permissions
from simpligest.core.security import authenticate_request
from simpligest.database.session import get_db
from simpligest.services.member_service import get_permissions_for


def require_auth(
    request: Request,
    api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key_alt: Optional[str] = Header(None, alias="api-key"),
    authorization: Optional[str] = Header(None),
):
    api_key_value = api_key or api_key_alt or request.headers.get(get_settings().API_KEY_HEADER)
    return authenticate_request(
        api_key=api_key_value,
        authorization=authorization,
        require_auth=True,
    )


def resolve_permissions(db: Session, auth: Optional[dict]) -> dict:
    # open deployments and API-key callers act as the owner
    if auth is None or auth.get("auth_type") == "api_key":
        return merge_permissions("admin")
    return get_permissions_for(db, auth.get("user_id"))


def require_permission(key: str):
    if key not in PERMISSION_KEYS:
        raise ValueError("Unknown permission: {}".format(key))

    def dependency(
        db: Session = Depends(get_db),
        auth: Optional[dict] = Depends(require_auth),
    ):
        permissions = resolve_permissions(db, auth)
        if not permissions.get(key):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Missing permission: {}".format(key),
            )
        return auth

    return dependency


def raise_for_domain_error(exc: Exception):
    if isinstance(exc, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, RuntimeError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    raise exc


__all__ = [
    "get_db",
    "raise_for_domain_error",
    "require_auth",
    "require_permission",
    "resolve_permissions",
]
