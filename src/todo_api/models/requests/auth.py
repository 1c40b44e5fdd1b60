from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .serde_base import SerdeBase


class Credentials(SerdeBase):
    username: str = Field(min_length=5)
    password: str = Field(min_length=8)


class SignupRequest(Credentials): ...


class SigninRequest(Credentials): ...


class UpdateUserRequest(SerdeBase):
    password: str = Field(min_length=8)


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    created_at: datetime
    updated_at: datetime


class SignupResponse(BaseModel):
    id: UUID
    username: str


class SigninResponse(BaseModel):
    id: UUID
    username: str
    access_token: str
    refresh_token: str


class RefreshResponse(BaseModel):
    access_token: str
