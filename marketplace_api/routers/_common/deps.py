"""
Request dependencies: caller identity and permission context.

The caller is identified by the X-User-Id header, set by the gateway in
front of this service once the session has been authenticated.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from marketplace_api.models import User
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.exceptions import AuthenticationError

USER_ID_HEADER = "X-User-Id"


def current_user(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency resolving the calling user.

    Raises:
        AuthenticationError: If the header is missing, malformed or names an
            unknown user.
    """
    if not x_user_id:
        raise AuthenticationError()

    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError(f"Invalid {USER_ID_HEADER} header")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Unknown user", user_id=user_id)
    return user


def get_permission_context(user: User = Depends(current_user)) -> PermissionContext:
    """FastAPI dependency building the caller's PermissionContext."""
    return PermissionContext(user)


def require_admin(ctx: PermissionContext = Depends(get_permission_context)) -> PermissionContext:
    """
    FastAPI dependency for admin-only endpoints.

    Raises:
        InsufficientRoleError: If the caller is not an admin.
    """
    ctx.require_admin()
    return ctx
