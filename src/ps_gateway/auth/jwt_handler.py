"""JWT access token verification.

Tokens are issued by the identity provider and carry ``sub`` (user id),
``email`` and ``role``. This service only verifies them; there is no login,
signup or special-account shortcut here. ``create_access_token`` exists for
local tooling and tests that need a token signed with the shared secret.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.ps_common.enums import UserRole
from src.ps_common.errors import InvalidTokenError
from src.ps_gateway.auth.session import Session

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, email: str, role: UserRole) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_session(token: str) -> Session:
    """Decode and validate an access token into a Session.

    Raises:
        InvalidTokenError: bad signature, expired, wrong type, or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access":
        raise InvalidTokenError()

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError()
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise InvalidTokenError() from None

    return Session(user_id=str(user_id), email=str(payload.get("email") or ""), role=role)
