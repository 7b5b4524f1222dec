"""Copy settings and their environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from copytool.filesystem import BUF_SIZE, RETRY_SECONDS

# Environment variables read by CopySettings.from_env()
ENV_PREFIX = "COPYTOOL_"
ENV_KEYS = ("retry_interval", "chunk_size", "max_tasks")


class CopySettings(BaseModel):
    """Tunables for one copy run."""

    model_config = ConfigDict(frozen=True)

    retry_interval: float = Field(default=RETRY_SECONDS, ge=0)
    chunk_size: int = Field(default=BUF_SIZE, gt=0)
    max_tasks: int | None = Field(default=None, ge=1)
    wait: bool = True

    @model_validator(mode="after")
    def _pool_requires_wait(self) -> CopySettings:
        if self.max_tasks is not None and not self.wait:
            raise ValueError("max_tasks requires waiting for the copy to finish")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> CopySettings:
        """Build settings from ``COPYTOOL_*`` variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            **overrides: Explicit values; None values are ignored so unset
                command-line options fall through to the environment.

        Returns:
            Validated settings.

        Raises:
            pydantic.ValidationError: If a value is out of range or malformed.
        """
        environ = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for key in ENV_KEYS:
            value = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if value:
                data[key] = value
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
