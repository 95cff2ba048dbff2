"""Settings for reaching the ArangoDB server.

Values come from the process environment, backed by a ``.env`` file that is
read once per process.  Look values up through :func:`get_env` rather than
:func:`os.getenv` so the file is always loaded first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def _load_environment() -> None:
    """Load the first ``.env`` found into the process environment.

    The search starts in the working directory and walks up; a source checkout
    falls back to the file next to the package.  Variables already set in the
    process win over the file.  Call ``_load_environment.cache_clear()`` to
    force a reload.
    """

    env_path = find_dotenv(usecwd=True)
    if not env_path:
        checkout_env = Path(__file__).resolve().parents[1] / ".env"
        env_path = str(checkout_env) if checkout_env.exists() else ""
    if env_path:
        load_dotenv(env_path, override=False)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return the value of ``key``, or ``default`` when it is unset."""

    _load_environment()
    return os.environ.get(key, default)


def get_bool_env(key: str, default: bool = False) -> bool:
    """Interpret ``key`` as a boolean flag."""

    value = get_env(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ArangoSettings:
    """Connection settings for the ArangoDB server backing a DAG."""

    host: str = "localhost"
    port: int = 8529
    username: str = "root"
    password: str = ""
    query_logging: bool = False

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> "ArangoSettings":
        """Build settings from ``ARANGODB_*`` environment variables."""

        port = get_env("ARANGODB_PORT", str(cls.port)) or str(cls.port)
        try:
            port_number = int(port)
        except ValueError as exc:
            raise ValueError(f"ARANGODB_PORT must be an integer, got {port!r}") from exc
        return cls(
            host=get_env("ARANGODB_HOST", cls.host) or cls.host,
            port=port_number,
            username=get_env("ARANGODB_USERNAME", cls.username) or cls.username,
            password=get_env("ARANGODB_PASSWORD", cls.password) or "",
            query_logging=get_bool_env("ARANGODB_QUERY_LOGGING"),
        )


__all__ = ["ArangoSettings", "get_bool_env", "get_env"]
