"""
Authentication and Authorization

FastAPI dependencies that turn a bearer token into an explicit ``CurrentUser``
which is then passed into every service operation. Nothing below the router
layer reads identity from ambient state.

Roles and permissions mirror the admissions office setup:
- admin: everything
- program_admin: reviews applications of the programs they administer
- student: works on their own application
"""

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from admissions.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token issued by the authentication service",
)


class UserRole(str, enum.Enum):
    """Roles known to the admissions core."""

    STUDENT = "student"
    PROGRAM_ADMIN = "program_admin"
    ADMIN = "admin"


class Permission(str, enum.Enum):
    """Actions checked by ``has_permission``."""

    ALL = "all"
    VIEW_APPLICATIONS = "view_applications"
    MANAGE_APPLICATIONS = "manage_applications"
    VIEW_REPORTS = "view_reports"
    MANAGE_STUDENTS = "manage_students"
    VIEW_OWN_APPLICATION = "view_own_application"
    EDIT_OWN_APPLICATION = "edit_own_application"
    SUBMIT_APPLICATION = "submit_application"


ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.ADMIN: frozenset({Permission.ALL}),
    UserRole.PROGRAM_ADMIN: frozenset(
        {
            Permission.VIEW_APPLICATIONS,
            Permission.MANAGE_APPLICATIONS,
            Permission.VIEW_REPORTS,
            Permission.MANAGE_STUDENTS,
        }
    ),
    UserRole.STUDENT: frozenset(
        {
            Permission.VIEW_OWN_APPLICATION,
            Permission.EDIT_OWN_APPLICATION,
            Permission.SUBMIT_APPLICATION,
        }
    ),
}


def has_permission(role: UserRole | str | None, permission: Permission | str) -> bool:
    """Return True if ``role`` grants ``permission`` (unknown roles grant nothing)."""
    try:
        granted = ROLE_PERMISSIONS[UserRole(role)]
    except (ValueError, KeyError):
        return False
    return Permission.ALL in granted or Permission(permission) in granted


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller, populated from token claims.

    Attributes:
        id: User's unique identifier
        role: User's role
        email: User's email address (optional)
    """

    id: UUID
    role: UserRole
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_program_admin(self) -> bool:
        return self.role == UserRole.PROGRAM_ADMIN

    def can(self, permission: Permission | str) -> bool:
        return has_permission(self.role, permission)

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role.value})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_from_claims(payload: dict) -> CurrentUser:
    """
    Build a ``CurrentUser`` from verified token claims.

    Raises:
        HTTPException 401: If the claims are missing or malformed
    """
    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id = UUID(str(payload["sub"]))
        role = UserRole(payload.get("role", ""))
    except (KeyError, ValueError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return CurrentUser(id=user_id, role=role, email=payload.get("email"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated caller.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
    """
    payload = decode_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    user = user_from_claims(payload)
    logger.debug(f"Authenticated {user}")
    return user


def require_permission(
    permission: Permission,
) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Dependency factory enforcing a permission before the handler runs.

    Usage:
        @router.post("/...")
        async def handler(user: CurrentUser = Depends(require_permission(Permission.X))):
            ...
    """

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.can(permission):
            logger.warning(f"Access denied: {user} lacks permission '{permission.value}'")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "PERMISSION_DENIED",
                    "message": f"Permission '{permission.value}' is required for this action.",
                },
            )
        return user

    return dependency


__all__ = [
    "CurrentUser",
    "Permission",
    "ROLE_PERMISSIONS",
    "UserRole",
    "get_current_user",
    "has_permission",
    "require_permission",
    "user_from_claims",
]
