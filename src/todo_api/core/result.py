from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ValidationError

__all__ = [
    "ErrorKind",
    "Failure",
    "Result",
    "Success",
    "validate",
]


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


@dataclass(frozen=True, slots=True)
class Success[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    kind: ErrorKind
    message: str


type Result[T] = Success[T] | Failure


def describe_validation_error(error: ValidationError) -> str:
    """Human readable message for the first violation of a pydantic error."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if not location:
        return first["msg"]
    return f"{location}: {first['msg']}"


def validate[M: BaseModel](model: type[M], data, context=None) -> Result[M]:
    try:
        return Success(model.model_validate(data, context=context))
    except ValidationError as e:
        return Failure(ErrorKind.VALIDATION, describe_validation_error(e))
