from dataclasses import dataclass
from enum import Enum

from .errors import Unauthorized


class Role(str, Enum):
    """Portal roles, resolved by the auth layer before the engine runs."""

    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
    TEAM = "TEAM"


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation.

    ``role`` is None when the profile carries a role the portal does not know;
    such an actor is authenticated but authorized for nothing.
    """

    user_id: str
    role: Role | None
    client_id: str | None = None

    @classmethod
    def from_claims(cls, user_id: str, role: str | None, client_id: str | None = None) -> "Actor":
        normalized = (role or "").strip().upper()
        resolved = Role(normalized) if normalized in Role.__members__ else None
        return cls(user_id=user_id, role=resolved, client_id=client_id or None)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_client(self) -> bool:
        return self.role is Role.CLIENT


def require_actor(actor: Actor | None) -> Actor:
    if actor is None or not actor.user_id:
        raise Unauthorized("Unauthorized")
    return actor
