"""
Parser limits.

Recursion depth of the parser follows the nesting depth of the input, so
services that parse filters from untrusted clients should cap both input
length and nesting. The defaults are generous for any real SCIM client.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError

MAX_LENGTH_ENV_VAR = "SCIM_FILTER_MAX_LENGTH"
MAX_DEPTH_ENV_VAR = "SCIM_FILTER_MAX_DEPTH"

DEFAULT_MAX_LENGTH = 8192
DEFAULT_MAX_DEPTH = 64


class ParserSettings(BaseModel):
    """
    Limits enforced by ``FilterParser`` and ``PathParser`` before parsing.

    ``None`` disables a limit.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_length: int | None = Field(DEFAULT_MAX_LENGTH, ge=1)
    max_depth: int | None = Field(DEFAULT_MAX_DEPTH, ge=1)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ParserSettings:
        """
        Build settings from ``SCIM_FILTER_MAX_LENGTH`` / ``SCIM_FILTER_MAX_DEPTH``.

        Unset or empty variables keep the defaults; ``none`` disables the limit.

        Raises:
            ConfigurationError: If a variable is not a positive integer or ``none``.
        """
        env = os.environ if environ is None else environ
        values: dict[str, int | None] = {}

        env_vars = (("max_length", MAX_LENGTH_ENV_VAR), ("max_depth", MAX_DEPTH_ENV_VAR))
        for field_name, var in env_vars:
            raw = env.get(var, "").strip()
            if not raw:
                continue
            if raw.lower() == "none":
                values[field_name] = None
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid {var} '{raw}'. Expected a positive integer or 'none'."
                ) from None

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            errors = e.errors()
            field_path = ".".join(str(loc) for loc in errors[0]["loc"])
            raise ConfigurationError(
                f"Invalid parser setting {field_path}: {errors[0]['msg']}"
            ) from None
