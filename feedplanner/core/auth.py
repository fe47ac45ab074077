"""Bearer token authentication for account-owned resources."""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from feedplanner.core.config import settings


security = HTTPBearer(auto_error=False)


class Account:
    """External identity that owns saved formulations."""
    def __init__(self, owner_id: str, email: Optional[str] = None):
        self.id = owner_id
        self.email = email


def decode_token(token: str) -> dict:
    """
    Verify an HS256 access token and return its claims.

    The audience must match settings.AUTH_JWT_AUDIENCE.
    """
    if not settings.AUTH_JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token secret not configured"
        )

    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[Account]:
    """Account from the bearer token, or None when no token was sent."""
    if credentials is None:
        return None

    claims = decode_token(credentials.credentials)
    owner_id = claims.get("sub")
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Account(owner_id=owner_id, email=claims.get("email"))


def require_auth(
    account: Optional[Account] = Depends(get_current_account)
) -> Account:
    """Dependency for endpoints that need a logged-in account."""
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account
