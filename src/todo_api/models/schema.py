from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import Text
from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class User(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(..., unique=True, index=True, description="Unique username")
    password: str = Field(..., description="argon2 digest of the user's password")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    todos: list["Todo"] = Relationship(
        back_populates="owner", sa_relationship_kwargs={"passive_deletes": True}
    )


class Todo(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(
        ...,
        foreign_key="user.id",
        ondelete="CASCADE",
        index=True,
        description="Owner of the todo",
    )
    title: str = Field(..., max_length=255)
    description: str | None = Field(default=None, sa_type=Text)
    is_completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    owner: User | None = Relationship(back_populates="todos")
