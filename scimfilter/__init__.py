"""
SCIM filter and PATCH path parser (RFC 7644 §3.4.2.2).

Example:
    from scimfilter import parse_filter, parse_path

    node = parse_filter('emails[type eq "work" and primary eq true]')
    target = parse_path('emails[type eq "work"].value')
"""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    FilterLimitError,
    FilterSyntaxError,
    InternalConsistencyError,
    InvalidValuePathError,
    ScimFilterError,
)
from .nodes import (
    COMPARISON_OPERATORS,
    AttributePath,
    Comparison,
    Conjunction,
    Connective,
    Disjunction,
    Negation,
    Node,
    ValuePath,
    iter_comparisons,
)
from .parser import BaseParser, FilterParser, ParserMode, PathParser, parse_filter, parse_path
from .settings import ParserSettings

__version__ = "0.1.0"

__all__ = [
    "COMPARISON_OPERATORS",
    "AttributePath",
    "BaseParser",
    "Comparison",
    "ConfigurationError",
    "Conjunction",
    "Connective",
    "Disjunction",
    "FilterLimitError",
    "FilterParser",
    "FilterSyntaxError",
    "InternalConsistencyError",
    "InvalidValuePathError",
    "Negation",
    "Node",
    "ParserMode",
    "ParserSettings",
    "PathParser",
    "ScimFilterError",
    "ValuePath",
    "__version__",
    "iter_comparisons",
    "parse_filter",
    "parse_path",
]
