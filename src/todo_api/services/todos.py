from collections.abc import Mapping
from typing import Any

from todo_api.core.authorization import Identity
from todo_api.core.pagination import PaginationResult, paginate, validate_pagination_query
from todo_api.core.result import ErrorKind, Failure, Result, Success, validate
from todo_api.models.requests import BulkDeleteQuery, TodoBody, TodoIdParam
from todo_api.models.schema import Todo, utcnow
from todo_api.repositories import Repository
from todo_api.services.boundary import service_boundary
from todo_api.shared.logger import Logger

__all__ = ["TodoService"]

logger = Logger(__name__).get_logger()

# The first column is the default sort.
SORTABLE_COLUMNS = ("updated_at", "title", "created_at")
SEARCHABLE_COLUMNS = ("title", "description")

TODO_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "Todo not found")


class TodoService:
    """Todos of the calling identity.

    Every lookup is filtered by owner as well as by id, so a todo belonging
    to someone else is reported exactly like a todo that does not exist.
    """

    def __init__(self, repository: Repository[Todo]):
        self.repository = repository

    @staticmethod
    def _owned(identity: Identity, **conditions) -> dict[str, Any]:
        return {**conditions, "user_id": identity.id}

    @service_boundary("create todo")
    async def create(self, identity: Identity, raw: Any) -> Result[Todo]:
        result = validate(TodoBody, raw)
        if isinstance(result, Failure):
            return result

        values = result.value.model_dump(exclude_none=True)
        todo = await self.repository.create({**values, "user_id": identity.id})

        logger.info("Todo created successfully: %s (owner %s)", todo.id, identity.id)
        return Success(todo)

    @service_boundary("find todo")
    async def find_one(self, identity: Identity, raw_id: Any) -> Result[Todo]:
        result = validate(TodoIdParam, {"todo_id": raw_id})
        if isinstance(result, Failure):
            return result

        todo = await self.repository.find_one(self._owned(identity, id=result.value.todo_id))
        if todo is None:
            return TODO_NOT_FOUND
        return Success(todo)

    @service_boundary("list todos")
    async def list(
        self, identity: Identity, raw_query: Mapping[str, Any]
    ) -> Result[PaginationResult[Todo]]:
        result = validate_pagination_query(raw_query, SORTABLE_COLUMNS)
        if isinstance(result, Failure):
            return result

        page = await paginate(
            self.repository.count,
            self.repository.find_many_paginated,
            self._owned(identity),
            result.value,
            SEARCHABLE_COLUMNS,
        )
        return Success(page)

    @service_boundary("update todo")
    async def update(self, identity: Identity, raw_id: Any, raw: Any) -> Result[Todo]:
        id_result = validate(TodoIdParam, {"todo_id": raw_id})
        if isinstance(id_result, Failure):
            return id_result

        body_result = validate(TodoBody, raw)
        if isinstance(body_result, Failure):
            return body_result

        # fields left out of the body keep their current value
        values = body_result.value.model_dump(exclude_unset=True)
        todo = await self.repository.update(
            self._owned(identity, id=id_result.value.todo_id),
            {**values, "updated_at": utcnow()},
        )
        if todo is None:
            return TODO_NOT_FOUND

        logger.info("Todo updated successfully: %s (owner %s)", todo.id, identity.id)
        return Success(todo)

    @service_boundary("delete todo")
    async def delete(self, identity: Identity, raw_id: Any) -> Result[None]:
        result = validate(TodoIdParam, {"todo_id": raw_id})
        if isinstance(result, Failure):
            return result

        todo_id = result.value.todo_id
        if not await self.repository.remove(self._owned(identity, id=todo_id)):
            return TODO_NOT_FOUND

        logger.info("Todo deleted successfully: %s (owner %s)", todo_id, identity.id)
        return Success(None)

    @service_boundary("bulk delete todos")
    async def bulk_delete(self, identity: Identity, raw_ids: Any) -> Result[int]:
        """Delete up to 50 todos given as comma separated ids.

        All ids are validated before anything is deleted. Ids that do not
        exist or belong to someone else are skipped silently; there is no
        all-or-nothing guarantee across ids.
        """
        result = validate(BulkDeleteQuery, {"ids": raw_ids})
        if isinstance(result, Failure):
            return result

        todo_ids = result.value.ids
        removed = 0
        for todo_id in todo_ids:
            removed += await self.repository.remove(self._owned(identity, id=todo_id))

        logger.info(
            "Multiple todos deleted successfully: %d of %d (owner %s)",
            removed,
            len(todo_ids),
            identity.id,
        )
        return Success(removed)
