from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.auth.config import AuthSettings
from shared.constants import Role
from shared.models.user import CurrentUser

http_bearer = HTTPBearer(auto_error=False)

_KNOWN_ROLES = {role.value for role in Role}


def _caller_from_token(token: str, settings: AuthSettings) -> CurrentUser:
    claims = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
    )
    subject = claims.get("sub")
    if not subject:
        raise ValueError("Token has no subject")
    # Roles issued for other services are ignored, not fatal
    roles = [Role(r) for r in claims.get("roles") or [] if r in _KNOWN_ROLES]
    return CurrentUser(id=UUID(subject), email=claims.get("email") or "", roles=roles)


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: AuthSettings = Depends(lambda: AuthSettings()),
) -> CurrentUser | None:
    if not credentials or not credentials.credentials:
        return None
    try:
        return _caller_from_token(credentials.credentials, settings)
    except (JWTError, ValueError):
        return None


async def get_current_user_required(
    user: CurrentUser | None = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
