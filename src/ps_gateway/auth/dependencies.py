"""FastAPI dependencies: get_current_session and role guards.

Usage in any protected router:
    from src.ps_gateway.auth.dependencies import get_current_session

    @router.get("/protected")
    async def protected(session: Session = Depends(get_current_session)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.ps_common.enums import UserRole
from src.ps_common.errors import ForbiddenError, InvalidTokenError
from src.ps_gateway.auth.jwt_handler import decode_session
from src.ps_gateway.auth.session import Session

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Session:
    """Validate the Bearer token and return the caller's Session.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        return decode_session(credentials.credentials)
    except InvalidTokenError:
        raise _CREDENTIALS_EXCEPTION from None


async def require_staff(
    session: Session = Depends(get_current_session),
) -> Session:
    """Shop staff (xerox) or admin."""
    if not session.is_staff:
        raise ForbiddenError("Shop staff access required")
    return session


async def require_admin(
    session: Session = Depends(get_current_session),
) -> Session:
    if session.role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")
    return session
