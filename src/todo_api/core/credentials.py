import secrets

from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext

from todo_api.shared.config import Password
from todo_api.shared.logger import Logger

__all__ = ["CredentialService"]

logger = Logger(__name__).get_logger()


class CredentialService:
    """Salted argon2 password hashing.

    Both operations run in the threadpool and suspend only the calling
    request.
    """

    def __init__(self, config: Password):
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__time_cost=config.time_cost,
            argon2__memory_cost=config.memory_cost,
            argon2__parallelism=config.parallelism,
        )
        self._dummy_digest: str | None = None

    async def hash(self, plain: str) -> str:
        return await run_in_threadpool(self._context.hash, plain)

    async def verify(self, digest: str, plain: str) -> bool:
        try:
            return await run_in_threadpool(self._context.verify, plain, digest)
        except (ValueError, TypeError) as e:
            logger.warning("Could not verify password against stored digest: %s", e)
            return False

    async def dummy_digest(self) -> str:
        """Digest of a random password with the configured work factor.

        Verifying against it costs as much as a real check and never succeeds.
        """
        if self._dummy_digest is None:
            self._dummy_digest = await self.hash(secrets.token_urlsafe(32))
        return self._dummy_digest
