from typing import Annotated, Any
from uuid import UUID

from pydantic import BeforeValidator


def _stringify_uuid(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


# Primary and foreign keys; Postgres uuid columns arrive as uuid.UUID
RowId = Annotated[str, BeforeValidator(_stringify_uuid)]
