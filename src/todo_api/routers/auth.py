from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status

from todo_api.core.authorization import Identity, require_refresh_token
from todo_api.services import UserService
from todo_api.shared.http import api_response, json_body, unwrap

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_service(request: Request) -> UserService:
    return request.app.state.users


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: Annotated[Any, Depends(json_body)],
    users: Annotated[UserService, Depends(user_service)],
):
    """
    input: {username, password}
    username at least 5 characters, password at least 8
    ==========================
    reject duplicate usernames
    hash password with argon2, persist
    """
    user = unwrap(await users.signup(body))
    return api_response(message="Created", data=user)


@router.post("/signin")
async def signin(
    body: Annotated[Any, Depends(json_body)],
    users: Annotated[UserService, Depends(user_service)],
):
    """Exchange username/password for an access and a refresh token."""
    tokens = unwrap(await users.signin(body))
    return api_response(data=tokens)


@router.post("/refresh")
async def refresh(
    identity: Annotated[Identity, Depends(require_refresh_token)],
    users: Annotated[UserService, Depends(user_service)],
):
    tokens = unwrap(await users.refresh(identity))
    return api_response(data=tokens)
