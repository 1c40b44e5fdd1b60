from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from todo_api.models.schema import *  # noqa: F403 # SQLModel subclasses need to be in memory
from todo_api.models.schema import User
from todo_api.shared.config import Database as DatabaseConfig
from todo_api.shared.logger import Logger

__all__ = ["DEMO_PASSWORD", "DEMO_USERS", "Database", "seed_users"]

logger = Logger(__name__).get_logger()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine plus the session factory every repository draws from."""

    def __init__(self, config: DatabaseConfig):
        self.engine: AsyncEngine = create_async_engine(config.url, echo=config.echo)
        if self.engine.dialect.name == "sqlite":
            # ON DELETE CASCADE is only honoured with this pragma
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database schema ready on %s", self.engine.url.render_as_string())

    async def dispose(self) -> None:
        await self.engine.dispose()


# ================================================================================
#       Demo data
# ================================================================================
DEMO_PASSWORD = "secretpassword"

DEMO_USERS = [
    (UUID("de159aac-67ab-40bf-9234-2b55b10d23db"), "john.doe", "2025-01-15T09:00:00"),
    (UUID("e92c325c-9522-4f64-8e4d-c568c8323008"), "jane.doe", "2025-01-18T14:30:00"),
    (UUID("19e565d0-8dfb-4f32-a33f-fd61772aaf03"), "AlexTheBuilder", "2025-01-20T10:15:00"),
    (UUID("2bcd8bf1-d4b7-4eaa-88fb-45bc90ad37a1"), "CloudArchitect", "2025-01-22T16:45:00"),
    (UUID("ce93fc37-71de-491f-98ea-6485d399370c"), "sudo_sam", "2025-01-25T11:20:00"),
]


async def seed_users(database: Database, credentials) -> int:
    """Insert the demo users that are not present yet. Returns how many were added."""
    digest = await credentials.hash(DEMO_PASSWORD)
    added = 0

    async with database.session_factory() as session:
        for user_id, username, created in DEMO_USERS:
            existing = await session.scalar(select(User).where(User.username == username))
            if existing is not None:
                logger.debug("Demo user %s already exists", username)
                continue

            timestamp = datetime.fromisoformat(created).replace(tzinfo=UTC)
            session.add(
                User(
                    id=user_id,
                    username=username,
                    password=digest,
                    created_at=timestamp,
                    updated_at=timestamp,
                )
            )
            added += 1

        await session.commit()

    logger.info("Seeded %d demo users", added)
    return added
