"""Bearer token verification.

Tokens are issued by the external identity service; ``create_access_token``
exists for seeding and tests and signs with the same shared secret.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from careconnect.shared.enums import UserRole

from .config import settings


class TokenDecodeError(Exception):
    """Raised when a JWT cannot be decoded or its claims are malformed."""


class TokenClaims(BaseModel):
    sub: str
    role: UserRole
    exp: datetime


def create_access_token(subject: str, role: UserRole | str, expires_minutes: int | None = None) -> str:
    issued = datetime.now(tz=timezone.utc)
    claims = {
        "sub": subject,
        "role": UserRole(role).value,
        "iat": issued,
        "exp": issued + timedelta(minutes=expires_minutes or settings.jwt_expires_in_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenClaims.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise TokenDecodeError("Invalid token") from exc
