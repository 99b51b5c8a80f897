from __future__ import annotations

from typing import Any

from ..exceptions import (
    ConfigurationError,
    FilterLimitError,
    FilterSyntaxError,
    InvalidValuePathError,
    ScimFilterError,
)


class CLIError(Exception):
    def __init__(
        self,
        message: str,
        *,
        exit_code: int = 1,
        error_type: str = "error",
        scim_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.error_type = error_type
        self.scim_type = scim_type
        self.details = details

    def __str__(self) -> str:
        return self.message


def cli_error_for_exception(exc: ScimFilterError) -> CLIError:
    """Map a parser error to the CLI error type, exit code and details it is reported with."""
    details: dict[str, Any] = {}

    if isinstance(exc, FilterSyntaxError):
        if exc.token is not None:
            details["token"] = exc.token
        if exc.position is not None:
            details["position"] = exc.position
        error_type = "syntax_error"
        if isinstance(exc, InvalidValuePathError):
            error_type = "invalid_value_path"
        return CLIError(
            str(exc),
            exit_code=2,
            error_type=error_type,
            scim_type=exc.scim_type,
            details=details or None,
        )

    if isinstance(exc, FilterLimitError):
        return CLIError(
            exc.message,
            exit_code=2,
            error_type="limit_exceeded",
            scim_type=exc.scim_type,
            details={"limit": exc.limit, "actual": exc.actual},
        )

    if isinstance(exc, ConfigurationError):
        return CLIError(exc.message, exit_code=2, error_type="config_error")

    return CLIError(exc.message, exit_code=1, error_type="internal_error", scim_type=exc.scim_type)
