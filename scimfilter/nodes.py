"""
AST node model for parsed SCIM filters and paths.

The node set is closed: ``AttributePath``, ``Comparison``, ``Negation``,
``Conjunction``, ``Disjunction`` and ``ValuePath``. Code walking a tree is
expected to handle every one of them.

Example:
    from scimfilter import parse_filter

    node = parse_filter('emails[type eq "work"] and active eq true')
    # Conjunction([
    #     ValuePath(emails, Comparison(emails.type, "eq", "work")),
    #     Comparison(active, "eq", True),
    # ])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Union

ComparisonValue = Union[str, int, float, bool, None]

COMPARISON_OPERATORS = frozenset(["eq", "ne", "co", "sw", "ew", "gt", "lt", "ge", "le", "pr"])


class Node(ABC):
    """Base class for AST nodes."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation tagged with the node type."""
        ...


@dataclass(eq=True)
class AttributePath(Node):
    """
    A possibly schema-qualified attribute reference.

    ``urn:ietf:params:scim:schemas:core:2.0:User:name.givenName`` has the
    schema ``urn:ietf:params:scim:schemas:core:2.0:User`` and the names
    ``["name", "givenName"]``.
    """

    schema: str | None
    names: list[str]

    def __post_init__(self) -> None:
        self.names = list(self.names)
        if not self.names:
            raise ValueError("An attribute path needs at least one name.")

    def __len__(self) -> int:
        return len(self.names)

    def __str__(self) -> str:
        return self.full_name

    @property
    def name(self) -> str:
        """Dotted attribute name without the schema."""
        return ".".join(self.names)

    @property
    def full_name(self) -> str:
        if self.schema:
            return f"{self.schema}:{self.name}"
        return self.name

    def copy(self) -> AttributePath:
        return AttributePath(self.schema, list(self.names))

    def to_dict(self) -> dict[str, Any]:
        return {"type": "attribute_path", "schema": self.schema, "names": list(self.names)}


@dataclass(eq=True)
class Comparison(Node):
    """``path operator value``; ``value`` is None for ``pr``."""

    path: AttributePath
    operator: str
    value: ComparisonValue = None

    def __post_init__(self) -> None:
        self.operator = self.operator.lower()
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unknown comparison operator '{self.operator}'.")

    @property
    def is_presence(self) -> bool:
        return self.operator == "pr"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "comparison",
            "path": self.path.to_dict(),
            "operator": self.operator,
            "value": self.value,
        }


@dataclass(eq=True)
class Negation(Node):
    """``not (inner)``."""

    inner: Node

    def to_dict(self) -> dict[str, Any]:
        return {"type": "negation", "inner": self.inner.to_dict()}


@dataclass(eq=True)
class Connective(Node):
    """Base for ``and``/``or`` over two or more children."""

    children: list[Node]

    node_type = "connective"

    def __post_init__(self) -> None:
        self.children = list(self.children)
        if len(self.children) < 2:
            raise ValueError(f"{type(self).__name__} needs at least two children.")

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.children)

    def __getitem__(self, index: int) -> Node:
        return self.children[index]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.node_type, "children": [child.to_dict() for child in self.children]}


@dataclass(eq=True)
class Conjunction(Connective):
    """All children must hold (``and``)."""

    node_type = "conjunction"


@dataclass(eq=True)
class Disjunction(Connective):
    """At least one child must hold (``or``)."""

    node_type = "disjunction"


@dataclass(eq=True)
class ValuePath(Node):
    """
    A bracketed filter on a multi-valued attribute, e.g. ``emails[type eq "work"]``.

    Comparisons inside ``inner`` carry the full path (``emails.type``).
    ``sub_attribute`` is only set by the path parser, for PATCH paths such as
    ``emails[type eq "work"].value``.
    """

    path: AttributePath
    inner: Node
    sub_attribute: str | None = None

    def __post_init__(self) -> None:
        if len(self.path) != 1:
            raise ValueError("A value path must be on a top-level attribute.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "value_path",
            "path": self.path.to_dict(),
            "inner": self.inner.to_dict(),
            "sub_attribute": self.sub_attribute,
        }


def iter_comparisons(node: Node) -> Iterator[Comparison]:
    """Yield every comparison in ``node``, depth first, left to right."""
    if isinstance(node, Comparison):
        yield node
    elif isinstance(node, Negation):
        yield from iter_comparisons(node.inner)
    elif isinstance(node, Connective):
        for child in node.children:
            yield from iter_comparisons(child)
    elif isinstance(node, ValuePath):
        yield from iter_comparisons(node.inner)
