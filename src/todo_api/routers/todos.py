from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status

from todo_api.core.authorization import Identity, require_access_token
from todo_api.services import TodoService
from todo_api.shared.http import api_response, json_body, unwrap

router = APIRouter(prefix="/api/todos", tags=["todos"])


def todo_service(request: Request) -> TodoService:
    return request.app.state.todos


@router.get("")
async def get_todos(
    request: Request,
    identity: Annotated[Identity, Depends(require_access_token)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    """
    query: page, limit, sort_by (updated_at | title | created_at),
    sort_order (asc | desc), search (matched against title and description)
    """
    page = unwrap(await todos.list(identity, request.query_params))
    return api_response(data={"todos": page.data, "pagination": page.pagination})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(
    identity: Annotated[Identity, Depends(require_access_token)],
    body: Annotated[Any, Depends(json_body)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    todo = unwrap(await todos.create(identity, body))
    return api_response(message="Created", data={"todo": todo})


@router.delete("")
async def delete_todos(
    request: Request,
    identity: Annotated[Identity, Depends(require_access_token)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    """Delete the todos listed in ``?ids=a,b,c``. Ids the caller does not own are ignored."""
    unwrap(await todos.bulk_delete(identity, request.query_params.get("ids")))
    return api_response()


@router.get("/{todo_id}")
async def get_todo(
    todo_id: str,
    identity: Annotated[Identity, Depends(require_access_token)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    todo = unwrap(await todos.find_one(identity, todo_id))
    return api_response(data={"todo": todo})


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    identity: Annotated[Identity, Depends(require_access_token)],
    body: Annotated[Any, Depends(json_body)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    todo = unwrap(await todos.update(identity, todo_id, body))
    return api_response(data={"todo": todo})


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: str,
    identity: Annotated[Identity, Depends(require_access_token)],
    todos: Annotated[TodoService, Depends(todo_service)],
):
    unwrap(await todos.delete(identity, todo_id))
    return api_response()
