"""JWT utilities for teacher/admin session tokens"""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from config import settings

# Claim names accepted for the user id and the role, in lookup order.
# Older frontends and seed scripts minted tokens with different keys.
USER_ID_CLAIMS = ("userId", "userID", "id", "id_profesor", "id_admin")
ROLE_CLAIMS = ("rol", "role", "rol_usuario")


class JWTManager:
    """Handles JWT session token creation and verification"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None, expires_minutes: Optional[int] = None):
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expires_minutes = expires_minutes or settings.JWT_EXPIRES_MINUTES

    def create_access_token(self, user_id: int, role: str, expires_minutes: Optional[int] = None) -> str:
        """
        Create a session token for a logged-in teacher or admin

        Args:
            user_id: Primary key in ``profesores`` or ``admins``
            role: "profesor" or "admin"
            expires_minutes: Token lifetime (default: JWT_EXPIRES_MINUTES)

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "rol": role,
            "iat": now,
            "exp": now + timedelta(minutes=expires_minutes or self.expires_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a session token

        Raises:
            jwt.InvalidTokenError: bad signature, malformed or expired token
        """
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])

    @staticmethod
    def identity(payload: Dict[str, Any]) -> Tuple[Optional[Any], Optional[str]]:
        """Return (user_id, role) from a decoded payload, None where absent"""
        user_id = next((payload[k] for k in USER_ID_CLAIMS if payload.get(k)), None)
        role = next((payload[k] for k in ROLE_CLAIMS if payload.get(k)), None)
        return user_id, role


# Global instance
jwt_manager = JWTManager()
