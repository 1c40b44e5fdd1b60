from .auth import (
    Credentials,
    RefreshResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UpdateUserRequest,
    UserPublic,
)
from .serde_base import SerdeBase
from .todos import MAX_BULK_DELETE, BulkDeleteQuery, TodoBody, TodoIdParam

__all__ = [
    "MAX_BULK_DELETE",
    "BulkDeleteQuery",
    "Credentials",
    "RefreshResponse",
    "SerdeBase",
    "SigninRequest",
    "SigninResponse",
    "SignupRequest",
    "SignupResponse",
    "TodoBody",
    "TodoIdParam",
    "UpdateUserRequest",
    "UserPublic",
]
