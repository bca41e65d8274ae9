"""JWT access-token verification.

Tokens are issued by the identity provider (registration, login and email
verification live there) and signed with the shared JWT_SECRET. This service
only verifies them; it never mints tokens outside of tests.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.sl_common.errors import AppError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid or expired token", 401)


def create_access_token(user_id: str, expires_in: timedelta = timedelta(minutes=30)) -> str:
    """Issue an access token the way the identity provider does (tests and local tooling)."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: signature, expiry or token type check failed.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access":
        raise InvalidTokenError()

    return payload
