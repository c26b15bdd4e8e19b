from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from mywork.core.config import settings

ALGORITHM = "HS256"
PASSWORD_MIN_LENGTH = 8
# bcrypt only reads the first 72 bytes and newer releases reject anything longer.
PASSWORD_MAX_BYTES = 72


class InvalidTokenError(ValueError):
    pass


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"

    def lifetime(self) -> timedelta:
        if self is TokenKind.ACCESS:
            return timedelta(minutes=settings.access_token_expire_minutes)
        return timedelta(days=settings.refresh_token_expire_days)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    jti: str
    expires_at: datetime


def validate_new_password(password: str) -> str:
    """Password policy shared by user creation and password changes."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    # Invited users have no password until they set one.
    if not hashed:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > PASSWORD_MAX_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))


def issue_token(user_id: str, kind: TokenKind) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "type": kind.value,
        "jti": str(uuid4()),
        "iat": int(now.timestamp()),
        "exp": int((now + kind.lifetime()).timestamp()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def read_token(token: str, kind: TokenKind) -> TokenClaims:
    """Decodes a signed token and checks it is of the expected kind."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc

    if claims.get("type") != kind.value:
        raise InvalidTokenError("Invalid token type")
    if not claims.get("sub") or not claims.get("jti") or not claims.get("exp"):
        raise InvalidTokenError("Invalid token claims")

    return TokenClaims(
        user_id=str(claims["sub"]),
        jti=str(claims["jti"]),
        expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
    )
