# medassist/routers/deps.py

from typing import Iterable, Optional
from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from medassist.core.jwt import decode_jwt_token
from medassist.utils.errors import ForbiddenError, UnauthorizedRequestError

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(token: str) -> dict:
    try:
        payload = decode_jwt_token(token)
    except JWTError:
        raise ForbiddenError("Could not validate credentials")
    user_id = payload.get("sub")
    if user_id is None:
        raise UnauthorizedRequestError("Invalid token")
    return {"user_id": str(user_id), "role": payload.get("role", "user")}


def get_current_user(token: HTTPAuthorizationCredentials = Security(bearer_scheme)) -> dict:
    return _user_from_token(token.credentials)


def get_optional_user(
    token: Optional[HTTPAuthorizationCredentials] = Security(optional_bearer_scheme),
) -> Optional[dict]:
    """The signed-in user, or None for anonymous callers."""
    if token is None:
        return None
    return _user_from_token(token.credentials)


def has_role(user: Optional[dict], roles: Iterable[str]) -> bool:
    return bool(user) and user.get("role") in set(roles)


def require_admin(current_user: dict = Depends(get_current_user)):
    if not has_role(current_user, ["admin"]):
        raise ForbiddenError("Admin access required")
    return current_user
