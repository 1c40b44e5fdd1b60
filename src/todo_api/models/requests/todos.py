import re
from typing import Annotated
from uuid import UUID

from pydantic import BeforeValidator, ConfigDict, Field, field_validator

from .serde_base import SerdeBase

MAX_BULK_DELETE = 50

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def _check_uuid_format(value):
    if isinstance(value, str) and not UUID_PATTERN.match(value):
        raise ValueError("must be a valid UUID")
    return value


# Only the canonical hyphenated form is accepted.
StrictUUID = Annotated[UUID, BeforeValidator(_check_uuid_format)]


class TodoBody(SerdeBase):
    # unknown keys are dropped rather than rejected
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    is_completed: bool = False


class TodoIdParam(SerdeBase):
    todo_id: StrictUUID


class BulkDeleteQuery(SerdeBase):
    model_config = ConfigDict(extra="ignore")

    ids: list[UUID]

    @field_validator("ids", mode="before")
    @classmethod
    def split_ids(cls, value):
        message = f"ids must be 1-{MAX_BULK_DELETE} comma-separated valid UUIDs"
        if not isinstance(value, str):
            raise ValueError(message)

        ids = [part.strip() for part in value.split(",")]
        if len(ids) > MAX_BULK_DELETE or not all(UUID_PATTERN.match(i) for i in ids):
            raise ValueError(message)

        return [UUID(i) for i in ids]
