import logging
from typing import Any, Dict, Optional

from ..errors import AuthenticationError, ConflictError
from ..models import User, new_id, utcnow
from ..schemas import AuthResponse, UserPublic
from ..security import TokenService, hash_password, verify_password
from ..stores import UserStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_DEACTIVATED = "Account is deactivated"


class AuthService:
    def __init__(self, users: UserStore, tokens: TokenService, bcrypt_rounds: int = 12):
        self.users = users
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def _issue(self, user: User) -> AuthResponse:
        token = self.tokens.create_access_token(user.id, user.email)
        return AuthResponse(access_token=token, user=UserPublic.from_entity(user))

    def register(self, email: str, password: str, first_name: str, last_name: str) -> AuthResponse:
        if self.users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        now = utcnow()
        user = User(
            id=new_id(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=hash_password(password, rounds=self.bcrypt_rounds),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.users.add(user)
        logger.info("Registered user %s", user.id)
        return self._issue(user)

    def authenticate_user(self, email: str, password: str) -> User:
        """Unknown email and wrong password fail identically."""
        user = self.users.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning("Rejected login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.is_active:
            logger.warning("Rejected login for deactivated user %s", user.id)
            raise AuthenticationError(ACCOUNT_DEACTIVATED)
        return user

    def login(self, email: str, password: str) -> AuthResponse:
        user = self.authenticate_user(email, password)
        return self._issue(user)

    def validate_token_claim(self, claims: Dict[str, Any]) -> Optional[User]:
        """Resolve a verified token's subject to the current user, or None if it is gone."""
        user_id = claims.get("sub")
        if not user_id:
            return None
        return self.users.get_by_id(user_id)

    def resolve_token(self, token: str) -> User:
        claims = self.tokens.decode(token)
        user = self.validate_token_claim(claims)
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return user

    def profile(self, user: User) -> UserPublic:
        return UserPublic.from_entity(user)
