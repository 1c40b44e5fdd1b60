import functools

from passlib.exc import MissingBackendError
from sqlalchemy.exc import SQLAlchemyError

from todo_api.core.authorization import Identity
from todo_api.core.result import ErrorKind, Failure
from todo_api.shared.logger import Logger

__all__ = ["INTERNAL_FAILURE", "service_boundary"]

logger = Logger(__name__).get_logger()

INTERNAL_FAILURE = Failure(ErrorKind.INTERNAL, "Internal Server Error")

# Collaborator errors that become an INTERNAL failure instead of propagating.
COLLABORATOR_ERRORS = (SQLAlchemyError, MissingBackendError)


def service_boundary(operation: str):
    """Classify data-access and hashing failures of a service coroutine.

    The full error is logged together with the caller's identity, the
    caller only ever sees a generic INTERNAL failure.
    """

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except COLLABORATOR_ERRORS as e:
                identity = next(
                    (a for a in (*args, *kwargs.values()) if isinstance(a, Identity)),
                    None,
                )
                logger.error(
                    "%s failed (identity=%s): %s",
                    operation,
                    identity.id if identity else "anonymous",
                    e,
                    exc_info=e,
                )
                return INTERNAL_FAILURE

        return wrapper

    return decorator
