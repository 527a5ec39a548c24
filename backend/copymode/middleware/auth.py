"""
JWT authentication dependencies for access tokens issued by /auth/login.
"""
from typing import Optional, Dict, Any
from fastapi import HTTPException, Security, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt
from jose.exceptions import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from copymode.core.config import settings
from copymode.core.database import get_db
from copymode.models.user import User

security = HTTPBearer()


class AccessTokenAuth:
    """HS256 access token validator."""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode an access token.

        Args:
            token: JWT token string

        Returns:
            Decoded token payload

        Raises:
            HTTPException: If token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                }
            )
        except JWTError as e:
            raise HTTPException(
                status_code=401,
                detail=f"Invalid token: {str(e)}"
            )

        if not payload.get("sub"):
            raise HTTPException(
                status_code=401,
                detail="Invalid token: missing sub"
            )

        return payload


# Singleton instance
token_auth = AccessTokenAuth()


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> Dict[str, Any]:
    """Dependency returning the decoded bearer token."""
    return token_auth.verify_token(credentials.credentials)


async def get_current_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency to get current authenticated user.

    Usage:
        @app.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="User is inactive")

    return user


async def get_current_user_id(
    user: User = Depends(get_current_user)
) -> str:
    """
    Dependency to get current user ID.

    Usage:
        @app.get("/me")
        async def me(user_id: str = Depends(get_current_user_id)):
            return {"user_id": user_id}
    """
    return user.id


async def require_admin(
    user: User = Depends(get_current_user)
) -> User:
    """
    Dependency to require admin role.

    Usage:
        @app.delete("/admin/users/{user_id}")
        async def delete_user(
            user_id: str,
            admin: User = Depends(require_admin)
        ):
            ...
    """
    if user.role != "admin":
        raise HTTPException(
            status_code=403,
            detail="Admin access required"
        )
    return user
