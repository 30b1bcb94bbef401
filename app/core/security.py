from jose import JWTError, jwt

from app.core.config import settings


def decode_auth_token(token: str) -> dict | None:
    """Verify a token issued by the hosted auth provider. Returns claims or None."""
    if not settings.auth_jwt_secret:
        return None
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        return None


def is_admin_claims(claims: dict) -> bool:
    role = claims.get("role") or (claims.get("app_metadata") or {}).get("role")
    if role in ("admin", "super_admin"):
        return True
    email = (claims.get("email") or "").lower()
    return bool(email) and email in settings.admin_emails_list
