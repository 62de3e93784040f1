"""
Connection settings.

``DbConfig.from_env()`` reads ``DB_HOST``, ``DB_PORT``, ``DB_USER``,
``DB_PASSWORD``, ``DB_NAME``, ``DB_DRIVER`` and ``DB_ECHO``, after loading the
``.env`` file found from the working directory if there is one.
``DATABASE_URL``, when set, is used as-is.
"""
from __future__ import annotations

import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, SecretStr
from sqlalchemy.engine import URL, make_url

DEFAULT_DRIVER = "mysql+aiomysql"

_ENV_FIELDS = {
    "host": "HOST",
    "port": "PORT",
    "user": "USER",
    "password": "PASSWORD",
    "db_name": "NAME",
    "driver": "DRIVER",
    "echo": "ECHO",
}


class DbConfig(BaseModel):
    host: str = "localhost"
    port: int = 3306
    user: str = ""
    password: SecretStr = SecretStr("")
    db_name: str = ""
    driver: str = DEFAULT_DRIVER
    echo: bool = False
    query: dict[str, str] | None = None
    database_url: str | None = None

    @classmethod
    def from_env(cls, prefix: str = "DB_") -> DbConfig:
        load_dotenv(find_dotenv(usecwd=True))
        values: dict[str, object] = {
            field: os.environ[prefix + suffix]
            for field, suffix in _ENV_FIELDS.items()
            if prefix + suffix in os.environ
        }
        database_url = os.getenv("DATABASE_URL")
        if database_url:
            values["database_url"] = database_url
        return cls(**values)

    @property
    def url(self) -> URL:
        if self.database_url:
            return make_url(self.database_url)
        query = self.query
        if query is None:
            query = {"charset": "utf8mb4"} if self.driver.startswith("mysql") else {}
        return URL.create(
            self.driver,
            username=self.user or None,
            password=self.password.get_secret_value() or None,
            host=self.host or None,
            port=self.port,
            database=self.db_name or None,
            query=query,
        )

    @property
    def dsn(self) -> str:
        """Connection string with the password masked, safe to log."""
        return self.url.render_as_string(hide_password=True)

    def render_dsn(self) -> str:
        return self.url.render_as_string(hide_password=False)
