from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from todo_api.core.authorization import Identity, require_access_token
from todo_api.services import UserService
from todo_api.shared.http import api_response, json_body, unwrap

from .auth import user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(
    request: Request,
    identity: Annotated[Identity, Depends(require_access_token)],
    users: Annotated[UserService, Depends(user_service)],
):
    page = unwrap(await users.list(identity, request.query_params))
    return api_response(data={"users": page.data, "pagination": page.pagination})


@router.get("/me")
async def get_me(
    identity: Annotated[Identity, Depends(require_access_token)],
    users: Annotated[UserService, Depends(user_service)],
):
    user = unwrap(await users.find_one(identity))
    return api_response(data={"user": user})


@router.put("/me")
async def update_me(
    identity: Annotated[Identity, Depends(require_access_token)],
    body: Annotated[Any, Depends(json_body)],
    users: Annotated[UserService, Depends(user_service)],
):
    """Change the caller's password. Tokens already issued stay valid until they expire."""
    user = unwrap(await users.update(identity, body))
    return api_response(data={"user": user})


@router.delete("/me")
async def delete_me(
    identity: Annotated[Identity, Depends(require_access_token)],
    users: Annotated[UserService, Depends(user_service)],
):
    unwrap(await users.delete(identity))
    return api_response()
