"""Identity provider seam.

The provider owns users; this service only needs the authenticated principal.
"""

from dataclasses import dataclass
from typing import Protocol

from src.sl_gateway.auth.jwt_handler import InvalidTokenError, decode_token


@dataclass(frozen=True)
class Principal:
    user_id: str


class IdentityProviderProtocol(Protocol):
    def authenticate(self, credentials: str) -> Principal: ...


class JwtIdentityProvider:
    """Authenticates bearer tokens issued by the identity provider."""

    def authenticate(self, credentials: str) -> Principal:
        payload = decode_token(credentials)
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError()
        return Principal(user_id=str(user_id))
