from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError

from todo_api.core.authorization import Identity
from todo_api.core.credentials import CredentialService
from todo_api.core.pagination import PaginationResult, paginate, validate_pagination_query
from todo_api.core.result import ErrorKind, Failure, Result, Success, validate
from todo_api.core.tokens import TokenKind, TokenService
from todo_api.models.requests import (
    RefreshResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UpdateUserRequest,
    UserPublic,
)
from todo_api.models.schema import User, utcnow
from todo_api.repositories import Repository
from todo_api.services.boundary import service_boundary
from todo_api.shared.logger import Logger

__all__ = ["UserService"]

logger = Logger(__name__).get_logger()

SORTABLE_COLUMNS = ("created_at", "username", "updated_at")
SEARCHABLE_COLUMNS = ("username",)

USERNAME_TAKEN = Failure(ErrorKind.VALIDATION, "user with the given username already exists")
# Same failure for unknown usernames and wrong passwords.
INVALID_CREDENTIALS = Failure(ErrorKind.AUTHENTICATION, "invalid credentials")
USER_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "User not found")


class UserService:
    def __init__(
        self,
        repository: Repository[User],
        credentials: CredentialService,
        tokens: TokenService,
    ):
        self.repository = repository
        self.credentials = credentials
        self.tokens = tokens

    @service_boundary("signup")
    async def signup(self, raw: Any) -> Result[SignupResponse]:
        result = validate(SignupRequest, raw)
        if isinstance(result, Failure):
            return result
        body = result.value

        if await self.repository.find_one({"username": body.username}) is not None:
            return USERNAME_TAKEN

        digest = await self.credentials.hash(body.password)
        try:
            user = await self.repository.create({"username": body.username, "password": digest})
        except IntegrityError:
            # lost a race against a concurrent signup with the same username
            return USERNAME_TAKEN

        logger.info("User registered successfully: %s (%s)", user.username, user.id)
        return Success(SignupResponse(id=user.id, username=user.username))

    create = signup

    @service_boundary("signin")
    async def signin(self, raw: Any) -> Result[SigninResponse]:
        result = validate(SigninRequest, raw)
        if isinstance(result, Failure):
            return result
        body = result.value

        user = await self.repository.find_one({"username": body.username})
        if user is None:
            # same argon2 work as a wrong password
            await self.credentials.verify(await self.credentials.dummy_digest(), body.password)
            logger.info("Signin rejected for unknown username")
            return INVALID_CREDENTIALS

        if not await self.credentials.verify(user.password, body.password):
            logger.info("Signin rejected for %s: wrong password", user.id)
            return INVALID_CREDENTIALS

        logger.info("User signed in successfully: %s (%s)", user.username, user.id)
        return Success(
            SigninResponse(
                id=user.id,
                username=user.username,
                access_token=self.tokens.issue(TokenKind.ACCESS, user.id),
                refresh_token=self.tokens.issue(TokenKind.REFRESH, user.id),
            )
        )

    async def refresh(self, identity: Identity) -> Result[RefreshResponse]:
        logger.info("Access token refreshed for %s", identity.id)
        return Success(
            RefreshResponse(access_token=self.tokens.issue(TokenKind.ACCESS, identity.id))
        )

    @service_boundary("find user")
    async def find_one(self, identity: Identity) -> Result[UserPublic]:
        user = await self.repository.find_one({"id": identity.id})
        if user is None:
            return USER_NOT_FOUND
        return Success(UserPublic.model_validate(user))

    @service_boundary("list users")
    async def list(
        self, identity: Identity, raw_query: Mapping[str, Any]
    ) -> Result[PaginationResult[UserPublic]]:
        """Users visible to the caller, which is only the caller itself.

        Filtered by owner like every other read, so the list cannot be used to
        enumerate usernames.
        """
        result = validate_pagination_query(raw_query, SORTABLE_COLUMNS)
        if isinstance(result, Failure):
            return result

        page = await paginate(
            self.repository.count,
            self.repository.find_many_paginated,
            {"id": identity.id},
            result.value,
            SEARCHABLE_COLUMNS,
        )
        return Success(
            PaginationResult(
                data=[UserPublic.model_validate(user) for user in page.data],
                pagination=page.pagination,
            )
        )

    @service_boundary("update user")
    async def update(self, identity: Identity, raw: Any) -> Result[UserPublic]:
        result = validate(UpdateUserRequest, raw)
        if isinstance(result, Failure):
            return result

        digest = await self.credentials.hash(result.value.password)
        user = await self.repository.update(
            {"id": identity.id}, {"password": digest, "updated_at": utcnow()}
        )
        if user is None:
            return USER_NOT_FOUND

        logger.info("Password changed for %s", identity.id)
        return Success(UserPublic.model_validate(user))

    @service_boundary("delete user")
    async def delete(self, identity: Identity) -> Result[None]:
        if not await self.repository.remove({"id": identity.id}):
            return USER_NOT_FOUND

        logger.info("User deleted: %s", identity.id)
        return Success(None)
