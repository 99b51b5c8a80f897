from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ErrorInfo(_ResultModel):
    type: str
    message: str
    scim_type: str | None = Field(None, alias="scimType")
    details: dict[str, Any] | None = None


class CommandResult(_ResultModel):
    ok: bool
    command: str
    input: str
    data: dict[str, Any] | None = None
    error: ErrorInfo | None = None
