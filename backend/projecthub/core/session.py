"""Session context forwarded from the external auth layer."""
from dataclasses import dataclass
from typing import Optional

from projecthub.core.config import settings
from projecthub.core.exceptions import PermissionDeniedError, ValidationError


@dataclass(frozen=True)
class SessionContext:
    """Firm scope plus the role/user strings of the calling session."""
    firm_id: Optional[str]
    role: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def scope_key(self) -> tuple[str, str, str]:
        return (self.firm_id or "", self.role or "", self.user_id or "")

    @property
    def can_manage(self) -> bool:
        return self.role in settings.MANAGER_ROLES


def require_firm(ctx: SessionContext) -> str:
    if not ctx.firm_id:
        raise ValidationError("Firm ID not found. Please login again.")
    return ctx.firm_id


def require_manager(ctx: SessionContext) -> None:
    if not ctx.can_manage:
        raise PermissionDeniedError("Insufficient role")
