"""
FastAPI Authentication Dependencies
Bearer-token checks shared by every protected route
"""

from dataclasses import dataclass
from typing import Any, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status

from models import UserRole
from utils.jwt_utils import jwt_manager
from utils.structured_logging import log_authentication_event


@dataclass(frozen=True)
class TokenUser:
    """Identity carried by a verified session token"""

    user_id: Any
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class AuthenticationError(Exception):
    """Custom exception for authentication failures"""

    pass


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token part of an ``Authorization: Bearer <token>`` header"""
    if not authorization:
        raise AuthenticationError("No Authorization header")

    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1].strip():
        raise AuthenticationError("No token")

    return parts[1].strip()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=f"Unauthorized: {detail}",
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# CORE AUTHENTICATION DEPENDENCIES
# =============================================================================


async def check_token(request: Request) -> TokenUser:
    """
    Require a valid session token

    401 when the header or token is missing, or when the token lacks a user id or role;
    403 when the token is invalid or expired.
    """
    try:
        token = extract_bearer_token(request.headers.get("Authorization"))
    except AuthenticationError as e:
        log_authentication_event("bearer_token", success=False, method="jwt", details={"reason": str(e)})
        raise _unauthorized(str(e))

    try:
        payload = jwt_manager.decode(token)
    except jwt.InvalidTokenError as e:
        log_authentication_event("bearer_token", success=False, method="jwt", details={"reason": type(e).__name__})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")

    user_id, role = jwt_manager.identity(payload)
    if not user_id or not role:
        log_authentication_event("bearer_token", success=False, method="jwt", details={"reason": "missing claims"})
        raise _unauthorized("Token missing userId or rol")

    request.state.user_id = user_id
    return TokenUser(user_id=user_id, role=role)


async def check_admin(current_user: TokenUser = Depends(check_token)) -> TokenUser:
    """Require an admin session token"""
    if not current_user.is_admin:
        log_authentication_event(
            "admin_only", user_id=current_user.user_id, success=False, method="jwt", details={"role": current_user.role}
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admins only")
    return current_user
