from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from uuid import UUID

import jwt

from todo_api.core.result import ErrorKind, Failure, Result, Success
from todo_api.shared.config import Auth
from todo_api.shared.logger import Logger

__all__ = ["ALGORITHM", "TokenError", "TokenKind", "TokenService"]

logger = Logger(__name__).get_logger()

# Never taken from the token header.
ALGORITHM = "HS256"


class TokenKind(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(StrEnum):
    NO_TOKEN = "No token provided"
    INVALID = "Invalid token"
    EXPIRED = "Token expired"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Issue and verify access/refresh JWTs.

    Each kind has its own secret and lifetime, so a refresh token never
    verifies as an access token (and vice versa) even though both are
    well-formed HS256 tokens.
    """

    def __init__(self, config: Auth, clock: Callable[[], datetime] = _utcnow):
        self.__clock = clock
        self.__keys: dict[TokenKind, tuple[str, timedelta]] = {
            TokenKind.ACCESS: (
                config.access_token_secret,
                config.access_token_expires_in,
            ),
            TokenKind.REFRESH: (
                config.refresh_token_secret,
                config.refresh_token_expires_in,
            ),
        }

    def issue(self, kind: TokenKind, identity_id: UUID) -> str:
        secret, lifetime = self.__keys[kind]
        now = self.__clock()
        payload = {
            "id": str(identity_id),
            "type": kind.value,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def verify(self, kind: TokenKind, token: str) -> Result[UUID]:
        secret, _ = self.__keys[kind]
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                # expiry is checked below against our own clock
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "id"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected %s token: %s", kind, e)
            return Failure(ErrorKind.AUTHENTICATION, TokenError.INVALID)

        if payload.get("type") != kind.value:
            logger.debug("Rejected %s token: wrong token type", kind)
            return Failure(ErrorKind.AUTHENTICATION, TokenError.INVALID)

        try:
            identity_id = UUID(str(payload["id"]))
            expires_at = float(payload["exp"])
        except (TypeError, ValueError):
            return Failure(ErrorKind.AUTHENTICATION, TokenError.INVALID)

        if self.__clock().timestamp() >= expires_at:
            return Failure(ErrorKind.AUTHENTICATION, TokenError.EXPIRED)

        return Success(identity_id)
