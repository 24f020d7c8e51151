"""
Caller identity passed explicitly to every access layer operation.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from cutroom.core.errors import AuthorizationDenied
from cutroom.rules.constants import ROLE_ADMIN, ROLE_EDITOR


@dataclass(frozen=True)
class SessionContext:
    """Resolved session: who is calling, with which role, on which token."""

    user_id: str
    email: str
    role: str
    access_token: str
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_staff(self) -> bool:
        """Editors and admins see internal comments."""
        return self.role in (ROLE_EDITOR, ROLE_ADMIN)


def require_role(ctx: SessionContext, roles: Iterable[str], message: str) -> None:
    """Raise AuthorizationDenied unless the caller has one of ``roles``."""
    if ctx.role not in set(roles):
        raise AuthorizationDenied(message, role=ctx.role)
