"""Tests for ParserSettings and environment configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from scimfilter import ConfigurationError, ParserSettings
from scimfilter.settings import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_LENGTH,
    MAX_DEPTH_ENV_VAR,
    MAX_LENGTH_ENV_VAR,
)


def test_defaults() -> None:
    settings = ParserSettings()
    assert settings.max_length == DEFAULT_MAX_LENGTH == 8192
    assert settings.max_depth == DEFAULT_MAX_DEPTH == 64


def test_settings_are_frozen() -> None:
    settings = ParserSettings()
    with pytest.raises(ValidationError):
        settings.max_length = 10  # type: ignore[misc]


def test_settings_reject_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        ParserSettings(max_width=10)  # type: ignore[call-arg]


def test_settings_reject_non_positive_limits() -> None:
    with pytest.raises(ValidationError):
        ParserSettings(max_depth=0)


def test_from_env_empty() -> None:
    assert ParserSettings.from_env({}) == ParserSettings()


def test_from_env_values() -> None:
    settings = ParserSettings.from_env({MAX_LENGTH_ENV_VAR: "100", MAX_DEPTH_ENV_VAR: " 8 "})
    assert settings.max_length == 100
    assert settings.max_depth == 8


def test_from_env_none_disables_limit() -> None:
    settings = ParserSettings.from_env({MAX_LENGTH_ENV_VAR: "None", MAX_DEPTH_ENV_VAR: ""})
    assert settings.max_length is None
    assert settings.max_depth == DEFAULT_MAX_DEPTH


def test_from_env_reads_os_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(MAX_DEPTH_ENV_VAR, "3")
    monkeypatch.delenv(MAX_LENGTH_ENV_VAR, raising=False)
    assert ParserSettings.from_env().max_depth == 3


def test_from_env_rejects_non_integer() -> None:
    with pytest.raises(ConfigurationError, match=MAX_DEPTH_ENV_VAR):
        ParserSettings.from_env({MAX_DEPTH_ENV_VAR: "deep"})


def test_from_env_rejects_zero() -> None:
    with pytest.raises(ConfigurationError, match="max_length"):
        ParserSettings.from_env({MAX_LENGTH_ENV_VAR: "0"})
