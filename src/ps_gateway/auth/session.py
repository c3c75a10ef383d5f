"""The identity a request runs as."""
from dataclasses import dataclass

from src.ps_common.enums import UserRole


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.XEROX, UserRole.ADMIN)
