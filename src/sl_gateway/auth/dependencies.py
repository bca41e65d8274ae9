"""FastAPI dependency: get_current_principal.

Usage in any protected router:
    from src.sl_gateway.auth.dependencies import get_current_principal

    @router.get("/protected")
    async def protected(principal: Principal = Depends(get_current_principal)):
        ...
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.sl_gateway.auth.identity import (
    IdentityProviderProtocol,
    JwtIdentityProvider,
    Principal,
)
from src.sl_gateway.auth.jwt_handler import InvalidTokenError

_bearer = HTTPBearer(auto_error=False)
_identity_provider: IdentityProviderProtocol = JwtIdentityProvider()

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_identity_provider() -> IdentityProviderProtocol:
    return _identity_provider


async def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    provider: IdentityProviderProtocol = Depends(get_identity_provider),
) -> Principal:
    """Validate the Bearer token and return the authenticated principal.

    Raises HTTP 401 if the token is missing, invalid, or expired. The principal id
    is left on request.state for the request log line.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        principal = provider.authenticate(credentials.credentials)
    except InvalidTokenError:
        raise _CREDENTIALS_EXCEPTION from None
    request.state.principal_id = principal.user_id
    return principal
