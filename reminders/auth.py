"""Principal passed explicitly through every engine entry point."""

from dataclasses import dataclass
from typing import Optional

from .errors import UnauthenticatedError


@dataclass(frozen=True)
class Principal:
    """An authenticated user, as resolved by the external auth layer."""

    user_id: str
    display_name: Optional[str] = None


def require_principal(principal: Optional[Principal]) -> Principal:
    """Return the principal, or raise UnauthenticatedError if there is none."""
    if principal is None or not principal.user_id:
        raise UnauthenticatedError()
    return principal
