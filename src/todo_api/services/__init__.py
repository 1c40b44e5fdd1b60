from .todos import TodoService
from .users import UserService

__all__ = ["TodoService", "UserService"]
