"""
Exception hierarchy for SCIM filter and path parsing.

Every error carries a ``scim_type`` matching the ``scimType`` values of
RFC 7644 §3.12, so an HTTP layer can turn a failed parse into a SCIM error
response without inspecting the exception class.
"""

from __future__ import annotations


class ScimFilterError(Exception):
    """Base class for all errors raised by this package."""

    scim_type: str | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FilterSyntaxError(ScimFilterError):
    """The token stream did not match what the grammar expects at this point."""

    scim_type = "invalidFilter"

    def __init__(
        self,
        message: str,
        *,
        token: str | None = None,
        position: int | None = None,
        expression: str | None = None,
    ) -> None:
        super().__init__(message)
        self.token = token
        self.position = position
        self.expression = expression

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (position {self.position})"


class InvalidValuePathError(FilterSyntaxError):
    """
    A value path was used where it is not allowed.

    Raised for value paths nested inside another value path, value paths on a
    sub-attribute (``name.givenName[...]``), and brackets whose content is not
    a comparison, negation or logical connective.
    """

    def __init__(
        self,
        message: str = "Invalid value path.",
        *,
        token: str | None = None,
        position: int | None = None,
        expression: str | None = None,
    ) -> None:
        super().__init__(message, token=token, position=position, expression=expression)


class InternalConsistencyError(ScimFilterError):
    """The parser reached a state that well-formed parsing should have excluded."""


class FilterLimitError(ScimFilterError):
    """The input exceeds a configured size or nesting limit."""

    scim_type = "invalidFilter"

    def __init__(self, message: str, *, limit: int, actual: int) -> None:
        super().__init__(message)
        self.limit = limit
        self.actual = actual


class ConfigurationError(ScimFilterError):
    """Invalid parser configuration (e.g. a malformed environment variable)."""
