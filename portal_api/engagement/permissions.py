"""Field-level write permissions.

A single declarative table of ``(entity, role, field)`` grants shared by every
mutation path. A field that is not granted is denied; there is no per-handler
whitelist anywhere else. Negotiated budget fields are granted to nobody: they
only change through the budget state machine.
"""

from collections.abc import Iterable
from enum import Enum

from .actor import Actor, Role
from .errors import Forbidden


class Entity(str, Enum):
    PROJECT = "project"
    # Fields accepted when a project is first created
    PROJECT_INTAKE = "project_intake"
    DELIVERABLE = "deliverable"
    DELIVERABLE_INTAKE = "deliverable_intake"
    CLIENT = "client"


PROJECT_DETAIL_FIELDS = (
    "title",
    "event_date",
    "event_time",
    "location",
    "service_type",
    "notes",
    "creative_name",
    "creative_phone",
    "slack_channel",
)
ACCOUNT_MANAGER_FIELDS = (
    "account_manager_names",
    "account_manager_emails",
    "account_manager_phones",
)
DELIVERABLE_DETAIL_FIELDS = ("name", "type", "external_link", "upload_date")


def _grant(entity: Entity, role: Role, fields: Iterable[str]) -> set[tuple[Entity, Role, str]]:
    return {(entity, role, field) for field in fields}


FIELD_PERMISSIONS: frozenset[tuple[Entity, Role, str]] = frozenset(
    _grant(
        Entity.PROJECT,
        Role.ADMIN,
        [*PROJECT_DETAIL_FIELDS, *ACCOUNT_MANAGER_FIELDS, "status", "client_id"],
    )
    | _grant(Entity.PROJECT, Role.CLIENT, PROJECT_DETAIL_FIELDS)
    | _grant(
        Entity.PROJECT_INTAKE,
        Role.ADMIN,
        [*PROJECT_DETAIL_FIELDS, *ACCOUNT_MANAGER_FIELDS, "status", "client_id"],
    )
    | _grant(Entity.PROJECT_INTAKE, Role.CLIENT, [*PROJECT_DETAIL_FIELDS, "requested_budget"])
    | _grant(Entity.DELIVERABLE, Role.ADMIN, [*DELIVERABLE_DETAIL_FIELDS, "status"])
    | _grant(Entity.DELIVERABLE, Role.CLIENT, ["status"])
    | _grant(Entity.DELIVERABLE_INTAKE, Role.ADMIN, DELIVERABLE_DETAIL_FIELDS)
    | _grant(Entity.CLIENT, Role.CLIENT, ["annual_budget"])
)


def can_write(entity: Entity, role: Role | None, field: str) -> bool:
    return role is not None and (entity, role, field) in FIELD_PERMISSIONS


def ensure_writable(entity: Entity, actor: Actor, fields: Iterable[str]) -> None:
    """Raise Forbidden if any of ``fields`` is not granted to the actor's role."""
    denied = sorted(field for field in fields if not can_write(entity, actor.role, field))
    if denied:
        role = actor.role.value if actor.role else "unknown role"
        raise Forbidden(
            f"Forbidden: {role} cannot change {entity.value} field(s): {', '.join(denied)}"
        )


def ensure_client_account(actor: Actor) -> str:
    if not actor.client_id:
        raise Forbidden("Forbidden: Client account not properly configured")
    return actor.client_id


def ensure_owner(actor: Actor, owner_client_id: str | None, action: str = "modify") -> None:
    """A CLIENT actor may only touch records of its own client."""
    client_id = ensure_client_account(actor)
    if owner_client_id != client_id:
        raise Forbidden(f"Forbidden: You can only {action} your own projects")


def ensure_can_view_client(actor: Actor, client_id: str) -> None:
    """Admins see every client; clients only themselves."""
    if actor.is_admin:
        return
    if actor.is_client:
        if ensure_client_account(actor) != client_id:
            raise Forbidden("Forbidden: You can only view your own dashboard")
        return
    raise Forbidden("Forbidden")
