"""Request-scoped wiring: stores, services and the bearer-token gate.

The gate is installed as an application-wide dependency, so every route is
authenticated unless its endpoint is decorated with :func:`public`.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationError
from .models import User
from .services import AuthService, CategoryService, TaskService
from .stores.providers import Stores

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def public(endpoint: Callable) -> Callable:
    """Mark an endpoint as reachable without a session token."""
    endpoint.is_public = True
    return endpoint


def is_public(request: Request) -> bool:
    route = request.scope.get("route")
    endpoint = getattr(route, "endpoint", None) or request.scope.get("endpoint")
    return getattr(endpoint, "is_public", False)


def get_stores(request: Request):
    with request.app.state.store_provider.open() as stores:
        yield stores


def get_auth_service(request: Request, stores: Stores = Depends(get_stores)) -> AuthService:
    settings = request.app.state.settings
    return AuthService(stores.users, request.app.state.token_service,
                       bcrypt_rounds=settings.bcrypt_rounds)


def get_category_service(stores: Stores = Depends(get_stores)) -> CategoryService:
    return CategoryService(stores.categories)


def get_task_service(stores: Stores = Depends(get_stores)) -> TaskService:
    return TaskService(stores.tasks, stores.categories)


def request_gate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """Resolve the caller from ``Authorization: Bearer`` and attach it to the request."""
    if is_public(request):
        return None
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    user = auth.resolve_token(credentials.credentials)
    request.state.user = user
    return user


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise AuthenticationError()
    return user
