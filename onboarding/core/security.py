"""
Caller identity resolution.

Authentication itself is owned by the identity service; this module only
decodes the bearer JWT it issues into a caller identity plus role and
offers role guards for the routers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from onboarding.config.settings import settings
from onboarding.core.exceptions import AuthenticationError, AuthorizationError
from onboarding.core.logging import bind_caller, get_logger
from onboarding.schemas.enums import UserRole

logger = get_logger(__name__)

# auto_error=False so a missing header surfaces as our AuthenticationError
security = HTTPBearer(auto_error=False)

STAFF_ROLES = (UserRole.STAFF, UserRole.ADMIN)


@dataclass(frozen=True)
class CurrentUser:
    """Lightweight representation of the authenticated caller."""

    id: str
    role: UserRole
    name: str = ""
    email: str = ""

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class TokenManager:
    """Decode and mint bearer tokens with the shared secret."""

    @staticmethod
    def create_token(claims: Dict[str, Any]) -> str:
        return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        """
        Verify and decode JWT token.

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        try:
            return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Authentication token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid authentication token") from e


def user_from_claims(payload: Dict[str, Any]) -> CurrentUser:
    subject = payload.get("sub") or payload.get("user_id")
    role = payload.get("role")
    if not subject or not role:
        raise AuthenticationError("Invalid token payload")
    try:
        role = UserRole(role)
    except ValueError as e:
        raise AuthenticationError("Invalid token claims") from e
    return CurrentUser(
        id=str(subject),
        role=role,
        name=payload.get("name") or "",
        email=payload.get("email") or "",
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """FastAPI dependency returning the authenticated caller."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")

    current = user_from_claims(TokenManager.verify_token(credentials.credentials))
    bind_caller(current.id, current.role.value)
    return current


def require_roles(*roles: UserRole):
    """Build a dependency that only lets the given roles through."""

    def dependency(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        ensure_role(current, roles)
        return current

    return dependency


def ensure_role(current: CurrentUser, roles: Iterable[UserRole]) -> None:
    roles = tuple(roles)
    if current.role not in roles:
        logger.warning(
            "Permission denied",
            extra={"user_id": current.id, "role": current.role.value},
        )
        raise AuthorizationError(
            f"Role '{current.role.value}' is not allowed to perform this action",
            required_roles=[role.value for role in roles],
        )


get_student_user = require_roles(UserRole.STUDENT)
get_staff_user = require_roles(*STAFF_ROLES)
get_admin_user = require_roles(UserRole.ADMIN)


__all__ = [
    "CurrentUser",
    "TokenManager",
    "STAFF_ROLES",
    "get_current_user",
    "require_roles",
    "ensure_role",
    "get_student_user",
    "get_staff_user",
    "get_admin_user",
]
