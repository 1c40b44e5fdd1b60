import re
from datetime import timedelta
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING
from os import PathLike
from pathlib import Path
from tomllib import load
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path("config.toml")

_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str | int) -> timedelta:
    """Parse ``15m``, ``7d``, ``3600`` style durations."""
    if isinstance(value, int):
        return timedelta(seconds=value)

    match = _DURATION.match(value)
    if match is None:
        raise ValueError(f"invalid duration {value!r}, expected e.g. '15m' or '7d'")

    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit])


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True)


class General(_Section):
    title: str = "todo-api"
    environment: Literal["development", "production", "test"] = "development"


class Database(_Section):
    url: str = "sqlite+aiosqlite:///todo.db"
    echo: bool = False


class Auth(_Section):
    access_token_secret: str = Field(min_length=32)
    refresh_token_secret: str = Field(min_length=32)
    access_token_expires_in: timedelta = timedelta(minutes=15)
    refresh_token_expires_in: timedelta = timedelta(days=7)
    access_token_header: str = "x-access-token"
    refresh_token_header: str = "x-refresh-token"

    @field_validator("access_token_expires_in", "refresh_token_expires_in", mode="before")
    @classmethod
    def convert_duration(cls, value):
        if isinstance(value, timedelta):
            return value
        return parse_duration(value)

    @field_validator("access_token_header", "refresh_token_header")
    @classmethod
    def check_header(cls, value: str) -> str:
        value = value.lower()
        if value == "authorization":
            raise ValueError("token headers must not use the generic authorization header")
        return value

    @model_validator(mode="after")
    def check_kinds_are_distinct(self):
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("access and refresh tokens must use different secrets")
        if self.access_token_header == self.refresh_token_header:
            raise ValueError("access and refresh tokens must use different headers")
        return self


class Password(_Section):
    # argon2 work factor
    time_cost: int = Field(default=3, ge=1)
    memory_cost: int = Field(default=65536, ge=8)
    parallelism: int = Field(default=4, ge=1)


class Logging(_Section):
    level: int = INFO

    @field_validator("level", mode="before")
    @classmethod
    def convert_log_level(cls, value):
        if isinstance(value, int):
            return value
        log_levels = {
            "DEBUG": DEBUG,
            "INFO": INFO,
            "WARNING": WARNING,
            "ERROR": ERROR,
            "CRITICAL": CRITICAL,
        }
        return log_levels.get(value.upper(), INFO)


class Paths(_Section):
    logs: str = "logs"


class RateLimit(_Section):
    window_seconds: int = Field(default=900, ge=1)
    general_max: int = Field(default=100, ge=1)
    auth_max: int = Field(default=10, ge=1)
    timeout_period: int = Field(default=0, ge=0)


class Network(_Section):
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    reload: bool = False
    cors_allowed_origins: list[str] = ["http://localhost:8080"]
    # JSON request bodies above this size are refused with 413
    max_body_bytes: int = Field(default=100 * 1024, ge=1)

    rate_limit: RateLimit = RateLimit()


class Config(_Section):
    general: General = General()
    database: Database = Database()
    auth: Auth
    password: Password = Password()
    paths: Paths = Paths()
    logging: Logging = Logging()
    network: Network = Network()


def load_config(
    shared_config_file: PathLike = DEFAULT_CONFIG_PATH,
    specific_config_file: PathLike | None = None,
) -> Config:
    """Load and merge configurations from TOML files."""
    # Load shared config
    with Path(shared_config_file).open("rb") as f:
        config_data = load(f)

    # Load and merge specific config if provided
    if specific_config_file:
        with Path(specific_config_file).open("rb") as f:
            specific_data = load(f)
            config_data.update(specific_data)

    return Config(**config_data)
