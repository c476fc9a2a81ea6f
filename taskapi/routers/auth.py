from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from ..dependencies import get_auth_service, get_current_user, public
from ..models import User
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from ..services import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/test")
@public
async def auth_test():
    """Check that the auth module is reachable"""
    return {
        "message": "Auth module is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": "ok",
    }


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@public
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """Create an account and return a token for it"""
    return auth.register(payload.email, payload.password, payload.first_name, payload.last_name)


@router.post("/login", response_model=AuthResponse)
@public
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Exchange email and password for an access token"""
    return auth.login(payload.email, payload.password)


@router.get("/profile", response_model=UserPublic)
def profile(current_user: User = Depends(get_current_user),
            auth: AuthService = Depends(get_auth_service)):
    """Get the account behind the current token"""
    return auth.profile(current_user)
