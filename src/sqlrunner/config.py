"""
Runner configuration

Settings for connection pooling, script lookup and parameter allocation,
read from ``SQLRUNNER_*`` environment variables and overridable per call.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

ENV_PREFIX = "SQLRUNNER_"

# Environment variable suffix -> field name
_ENV_FIELDS = {
    "DATABASE_URL": "database_url",
    "POOL_SIZE": "pool_size",
    "ACQUIRE_TIMEOUT": "acquire_timeout_seconds",
    "BUSY_TIMEOUT": "busy_timeout_seconds",
    "SCRIPTS_DIR": "scripts_dir",
    "STRICT_PARAMETERS": "strict_parameters",
}


class RunnerConfig(BaseModel):
    """Configuration for script execution

    Attributes:
        database_url: Database URL (e.g., "sqlite:///app.db") or plain SQLite file path
        pool_size: Maximum number of connections checked out at once
        acquire_timeout_seconds: How long a caller waits for a free connection
        busy_timeout_seconds: How long SQLite waits on a locked database
        scripts_dir: Directory that relative script paths are resolved against
        strict_parameters: Reject parameters left over after the last statement
    """

    database_url: str = Field(default="sqlite:///sqlrunner.db", description="Database URL")
    pool_size: int = Field(default=5, ge=1, description="Connection pool size")
    acquire_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Connection acquire timeout in seconds"
    )
    busy_timeout_seconds: float = Field(
        default=5.0, ge=0, description="SQLite busy timeout in seconds"
    )
    scripts_dir: Path | None = Field(default=None, description="Base directory for script paths")
    strict_parameters: bool = Field(
        default=False, description="Raise on parameters left over after allocation"
    )

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> RunnerConfig:
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            **overrides: Field values taking precedence over the environment;
                None values are ignored

        Returns:
            Validated configuration
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = environ.get(f"{ENV_PREFIX}{suffix}")
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)
