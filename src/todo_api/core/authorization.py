"""
Authorization gate for protected routes.

``authorize`` holds the decision logic and is independent of HTTP. The
``require_access_token`` and ``require_refresh_token`` dependencies read the
token from its dedicated header, bind the resulting ``Identity`` to
``request.state`` and turn a rejection into a 401 response.
"""

from uuid import UUID

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from todo_api.core.result import ErrorKind, Failure, Result, Success
from todo_api.core.tokens import TokenError, TokenKind, TokenService
from todo_api.shared.http import unwrap
from todo_api.shared.logger import Logger

__all__ = [
    "Identity",
    "authorize",
    "require_access_token",
    "require_refresh_token",
    "token_gate",
]

logger = Logger(__name__).get_logger()


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID


def authorize(tokens: TokenService, kind: TokenKind, token: str | None) -> Result[Identity]:
    if not token:
        return Failure(ErrorKind.AUTHENTICATION, TokenError.NO_TOKEN)

    match tokens.verify(kind, token):
        case Success(value=identity_id):
            return Success(Identity(id=identity_id))
        case failure:
            return failure


def token_gate(kind: TokenKind):
    async def gate(request: Request) -> Identity:
        auth = request.app.state.config.auth
        header = (
            auth.access_token_header
            if kind is TokenKind.ACCESS
            else auth.refresh_token_header
        )

        result = authorize(request.app.state.tokens, kind, request.headers.get(header))

        if isinstance(result, Success):
            logger.info(
                "%s %s: %s token accepted for %s",
                request.method,
                request.url.path,
                kind,
                result.value.id,
            )
            request.state.identity = result.value
        else:
            logger.warning(
                "%s %s: %s token rejected (%s)",
                request.method,
                request.url.path,
                kind,
                result.message,
            )

        return unwrap(result)

    gate.__name__ = f"require_{kind}_token"
    return gate


require_access_token = token_gate(TokenKind.ACCESS)
require_refresh_token = token_gate(TokenKind.REFRESH)
