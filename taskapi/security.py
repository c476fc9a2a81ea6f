"""Password hashing and access-token signing."""
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from .errors import AuthenticationError


def _prehash(password: str) -> bytes:
    # bcrypt only reads 72 bytes; pre-hashing keeps long passwords significant
    return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("ascii")


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_prehash(password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


class TokenService:
    """Issues and verifies HS256 tokens carrying ``sub`` (user id) and ``email``."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 1440):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(self, user_id: str, email: str,
                            expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None
                        else timedelta(minutes=self.expire_minutes))
        payload = {"sub": user_id, "email": email, "iat": now, "exp": expire}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Return the verified claims or raise AuthenticationError."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            raise AuthenticationError("Invalid or expired token")
        if not claims.get("sub"):
            raise AuthenticationError("Invalid or expired token")
        return claims
