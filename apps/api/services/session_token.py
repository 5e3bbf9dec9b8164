"""Session token verification for requests coming from the web client.

Tokens are issued by the account service; this API only needs to verify them.
``create_session_token`` exists for scripts and tests that need to act as a user.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "nuggets_session"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: Optional[str]
    expires_at: int


def create_session_token(
    user_id: str,
    email: Optional[str] = None,
    ttl_hours: Optional[int] = None,
) -> str:
    """Sign a session token for ``user_id``."""
    now = datetime.now(timezone.utc)
    hours = int(ttl_hours or settings.JWT_EXPIRATION_HOURS or 24)
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=max(hours, 1))).timestamp()),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """Verify signature, expiry and token type; raise ValueError otherwise."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ValueError("Token expired") from exc
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

    if str(payload.get("type", "")).strip() != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid token type")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Token missing subject")

    return SessionClaims(
        user_id=subject,
        email=str(payload.get("email", "")).strip() or None,
        expires_at=int(payload.get("exp", 0)),
    )
