from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from todo_api.core.credentials import CredentialService
from todo_api.core.tokens import TokenService
from todo_api.main import create_app
from todo_api.shared.config import Config
from todo_api.shared.db import Database

ACCESS_SECRET = "test-access-secret-0123456789abcdefghij"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdefghij"
TEST_PASSWORD = "secretpassword"


def make_config(tmp_path: Path, **rate_limit) -> Config:
    return Config(
        general={"title": "todo-api tests", "environment": "test"},
        database={"url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"},
        auth={
            "access_token_secret": ACCESS_SECRET,
            "refresh_token_secret": REFRESH_SECRET,
        },
        # cheapest argon2 parameters, tests only
        password={"time_cost": 1, "memory_cost": 8, "parallelism": 1},
        logging={"level": "DEBUG"},
        paths={"logs": ""},
        network={
            "rate_limit": {
                "general_max": 10_000,
                "auth_max": 10_000,
                **rate_limit,
            }
        },
    )


@pytest.fixture
def config(tmp_path) -> Config:
    return make_config(tmp_path)


@pytest.fixture
def tokens(config) -> TokenService:
    return TokenService(config.auth)


@pytest.fixture
def credentials(config) -> CredentialService:
    return CredentialService(config.password)


@pytest_asyncio.fixture
async def database(config):
    database = Database(config.database)
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as client:
        yield client


def signup(client: TestClient, username: str, password: str = TEST_PASSWORD):
    return client.post("/api/auth/signup", json={"username": username, "password": password})


def signin(client: TestClient, username: str, password: str = TEST_PASSWORD):
    return client.post("/api/auth/signin", json={"username": username, "password": password})


def register(client: TestClient, username: str) -> dict:
    """Sign a fresh user up and in; returns the signin payload."""
    assert signup(client, username).status_code == 201
    response = signin(client, username)
    assert response.status_code == 200
    return response.json()["data"]


def access_headers(session: dict) -> dict:
    return {"x-access-token": session["access_token"]}


def refresh_headers(session: dict) -> dict:
    return {"x-refresh-token": session["refresh_token"]}
