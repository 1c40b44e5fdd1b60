from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from todo_api.core.credentials import CredentialService
from todo_api.core.tokens import TokenService
from todo_api.middleware import RateLimit, RequestLogger, SecurityHeaders
from todo_api.models.schema import Todo, User
from todo_api.repositories import Repository
from todo_api.routers import get_routers
from todo_api.services import TodoService, UserService
from todo_api.shared import Config, Logger, load_config, setup_logging
from todo_api.shared.db import Database
from todo_api.shared.http import (
    http_exception_handler,
    server_error_handler,
    validation_exception_handler,
)

logger = Logger(__name__).get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    await database.create_all()
    logger.info("Application started (%s)", app.state.config.general.environment)
    yield
    await database.dispose()
    logger.info("Application stopped")


# ================================================================================
#       FastAPI Setup
# ================================================================================
def create_app(config: Config | None = None) -> FastAPI:
    if config is None:
        config = load_config()

    setup_logging(config.logging.level, config.paths.logs or None)

    app = FastAPI(title=config.general.title, lifespan=lifespan)

    # Process-wide, read-only after this point
    database = Database(config.database)
    tokens = TokenService(config.auth)
    credentials = CredentialService(config.password)

    app.state.config = config
    app.state.database = database
    app.state.tokens = tokens
    app.state.credentials = credentials
    app.state.users = UserService(
        Repository(User, database.session_factory), credentials, tokens
    )
    app.state.todos = TodoService(Repository(Todo, database.session_factory))

    for router in get_routers():
        app.include_router(router)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, server_error_handler)

    # Last added runs first
    app.add_middleware(RateLimit, config=config.network.rate_limit)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.network.cors_allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=[
            "Content-Type",
            config.auth.access_token_header,
            config.auth.refresh_token_header,
        ],
    )
    app.add_middleware(SecurityHeaders)
    app.add_middleware(RequestLogger)

    return app


# ================================================================================
#       Command Line
# ================================================================================
def welcome(config: Config):
    # Log server banner
    for line in config.general.title.split("\n"):
        logger.info(line)

    # Log server startup information
    logger.info(
        "Starting todo server on %s:%s", config.network.host, config.network.port
    )


def main(argv=None):
    config = load_config()
    setup_logging(config.logging.level, config.paths.logs or None)
    welcome(config)

    import uvicorn

    uvicorn.run(
        "todo_api.main:create_app",
        factory=True,
        host=config.network.host,
        port=config.network.port,
        reload=config.network.reload,
    )


if __name__ == "__main__":
    main()
