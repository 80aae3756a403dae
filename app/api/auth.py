"""Caller identity for API endpoints

Access tokens are issued by the identity service; this module only verifies
them and turns the claims into an `Actor`.
"""

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.config import settings
from app.models.user import UserRole
from app.orders.policies import Actor

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    """Get the authenticated actor from the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
        user_id: str = payload.get("sub")
        role: str = payload.get("role")
        token_type: str = payload.get("type", "access")

        if user_id is None or role is None or token_type != "access":
            raise credentials_exception

        return Actor(id=UUID(user_id), role=UserRole(role))
    except (JWTError, ValueError):
        raise credentials_exception


def require_role(*roles: UserRole):
    """Dependency factory restricting an endpoint to the given roles"""
    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return actor
    return role_checker
