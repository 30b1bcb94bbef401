from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.db import get_session
from app.core.security import decode_auth_token, is_admin_claims

__all__ = ["get_session", "get_admin_claims"]

security = HTTPBearer(auto_error=False)


async def get_admin_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Verify the hosted auth provider's bearer token and require an admin."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = decode_auth_token(credentials.credentials)
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not is_admin_claims(claims):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return claims
