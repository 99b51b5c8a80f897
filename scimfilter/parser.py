"""
Recursive descent parser for SCIM filters and PATCH paths (RFC 7644 §3.4.2.2).

Example:
    from scimfilter import FilterParser, PathParser

    FilterParser().parse('userName eq "bjensen" and emails[type eq "work"]')
    PathParser().parse('members[value eq "2819c223"].display')

``and`` binds tighter than ``or`` and chains of one connective are flattened
into a single node, so ``a and b or c and d`` becomes
``Disjunction[Conjunction[a, b], Conjunction[c, d]]``.
"""

from __future__ import annotations

import logging
from enum import Enum

from .exceptions import (
    FilterLimitError,
    FilterSyntaxError,
    InternalConsistencyError,
    InvalidValuePathError,
)
from .nodes import (
    AttributePath,
    Comparison,
    ComparisonValue,
    Conjunction,
    Connective,
    Disjunction,
    Negation,
    Node,
    ValuePath,
)
from .settings import ParserSettings
from .tokenizer import FILTER_PATTERNS, SUBATTR_PATTERN, Stream, Token, TokenKind, Tokenizer

logger = logging.getLogger(__name__)

_VALUE_KINDS = (TokenKind.STRING, TokenKind.NUMBER, TokenKind.BOOL, TokenKind.NULL)


class ParserMode(Enum):
    """Which grammar a parser accepts."""

    FILTER = "filter"
    PATH = "path"


class BaseParser:
    """
    Shared grammar for filter and path parsing.

    An instance only holds its mode, tokenizer and settings, all read-only
    after construction, so one instance can serve concurrent parses.
    """

    def __init__(self, mode: ParserMode, settings: ParserSettings | None = None) -> None:
        patterns = list(FILTER_PATTERNS)
        if mode is ParserMode.PATH:
            patterns.append(SUBATTR_PATTERN)

        self.mode = mode
        self.settings = settings if settings is not None else ParserSettings()
        self.tokenizer = Tokenizer(patterns)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.value})"

    # -------------------------------------------------------------------------
    # Entry helpers
    # -------------------------------------------------------------------------

    def _tokenize_input(self, text: str) -> Stream:
        """Tokenize a top-level input after checking it against the configured limits."""
        max_length = self.settings.max_length
        if max_length is not None and len(text) > max_length:
            raise FilterLimitError(
                f"Expression is {len(text)} characters long, the limit is {max_length}.",
                limit=max_length,
                actual=len(text),
            )

        stream = self.tokenizer.tokenize(text)

        max_depth = self.settings.max_depth
        if max_depth is not None:
            depth = deepest = 0
            for token in stream.tokens:
                if token.kind in (TokenKind.PAREN_OPEN, TokenKind.BRACKET_OPEN):
                    depth += 1
                    deepest = max(deepest, depth)
                elif token.kind in (TokenKind.PAREN_CLOSE, TokenKind.BRACKET_CLOSE):
                    depth -= 1
            if deepest > max_depth:
                raise FilterLimitError(
                    f"Expression nests {deepest} levels deep, the limit is {max_depth}.",
                    limit=max_depth,
                    actual=deepest,
                )

        return stream

    def _expect_end(self, stream: Stream) -> None:
        # A connective at the very end has no trailing whitespace, so it tokenizes as a name.
        if stream.is_next(TokenKind.NAME) and stream.next_value().lower() in ("and", "or"):
            raise FilterSyntaxError(
                f"Unexpected end of input after '{stream.next_value()}', expected an expression.",
                token=stream.next_value(),
                position=stream.position,
                expression=stream.source,
            )

        if stream.has_next():
            raise FilterSyntaxError(
                f"Unexpected '{stream.next_value().strip()}' after the end of the expression.",
                token=stream.next_value(),
                position=stream.position,
                expression=stream.source,
            )

    def _parse_substring(self, text: str, offset: int, in_value_path: bool) -> Node | None:
        """Parse the contents of a parenthesized group as a complete expression."""
        stream = self.tokenizer.tokenize(text, offset)
        node = self.parse_inner(stream, in_value_path)
        self._expect_end(stream)
        return node

    # -------------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------------

    def parse_inner(self, stream: Stream, in_value_path: bool = False) -> Node | None:
        """
        Parse an operand followed by any number of ``and``/``or`` operands.

        Returns None when the first operand is an empty group, ``()`` or ``not()``.
        """
        node = self._parse_operand(stream, in_value_path)
        if node is None:
            return None

        if stream.is_next(TokenKind.LOG_OP):
            return self._parse_connective(stream, node, in_value_path)

        return node

    def _parse_operand(self, stream: Stream, in_value_path: bool) -> Node | None:
        if stream.is_next(TokenKind.PAREN_OPEN):
            return self._parse_parentheses(stream, in_value_path)

        if stream.is_next(TokenKind.NEGATION):
            return self._parse_negation(stream, in_value_path)

        if stream.is_next(TokenKind.NAME):
            return self._parse_attribute_path(stream, in_value_path)

        if in_value_path:
            raise InvalidValuePathError(
                "Expected a comparison, negation or logical expression inside value path "
                f"brackets, got '{stream.next_value().strip()}'.",
                token=stream.next_value() or None,
                position=stream.position,
                expression=stream.source,
            )

        if not stream.has_next():
            raise FilterSyntaxError(
                "Unexpected end of input, expected an attribute/value path, "
                "opening parenthesis or a negation.",
                position=stream.position,
                expression=stream.source,
            )

        raise FilterSyntaxError(
            "Expected an attribute/value path, opening parenthesis or a negation, "
            f"got '{stream.next_value().strip()}'.",
            token=stream.next_value(),
            position=stream.position,
            expression=stream.source,
        )

    def _parse_parentheses(self, stream: Stream, in_value_path: bool) -> Node | None:
        """Consume ``( ... )`` and parse what is between the parentheses."""
        stream.match_next(TokenKind.PAREN_OPEN)
        offset = stream.position
        text = stream.join_until(TokenKind.PAREN_CLOSE, opening=TokenKind.PAREN_OPEN)
        stream.match_next(TokenKind.PAREN_CLOSE)

        if not text:
            return None

        return self._parse_substring(text, offset, in_value_path)

    def _parse_negation(self, stream: Stream, in_value_path: bool) -> Node | None:
        stream.match_next(TokenKind.NEGATION)
        node = self._parse_parentheses(stream, in_value_path)

        if node is None:
            return None

        return Negation(node)

    def _parse_attribute_name(self, token: Token) -> AttributePath:
        name = token.text
        schema = None

        # Schema URNs contain colons themselves, the attribute starts after the last one.
        if ":" in name:
            schema, name = name.rsplit(":", 1)

        return AttributePath(schema, name.split("."))

    def _parse_attribute_path(self, stream: Stream, in_value_path: bool) -> Node:
        token = stream.match_next(TokenKind.NAME)
        attribute_path = self._parse_attribute_name(token)

        if stream.is_next(TokenKind.BRACKET_OPEN):
            if in_value_path:
                raise InvalidValuePathError(
                    f"Value path '{token.text}[...]' cannot be nested inside another value path.",
                    token=token.text,
                    position=token.position,
                    expression=stream.source,
                )
            if len(attribute_path) != 1:
                raise InvalidValuePathError(
                    f"Value path '{token.text}[...]' is only allowed on a top-level attribute.",
                    token=token.text,
                    position=token.position,
                    expression=stream.source,
                )
            return self._parse_value_path(stream, attribute_path)

        return self._parse_comparison(stream, attribute_path)

    def _parse_value_path(self, stream: Stream, attribute_path: AttributePath) -> ValuePath:
        bracket = stream.match_next(TokenKind.BRACKET_OPEN)

        node = self.parse_inner(stream, True)

        if not isinstance(node, (Comparison, Negation, Connective)):
            raise InvalidValuePathError(
                f"Value path '{attribute_path.full_name}[...]' must contain a filter.",
                token=bracket.text,
                position=bracket.position,
                expression=stream.source,
            )

        stream.match_next(TokenKind.BRACKET_CLOSE)

        self._prefix_attribute_paths(attribute_path, node)

        return ValuePath(attribute_path, node)

    def _parse_comparison(self, stream: Stream, attribute_path: AttributePath) -> Comparison:
        operator = stream.match_next(TokenKind.COMP_OP).text.strip().lower()
        value: ComparisonValue = None

        if operator != "pr":
            token = stream.match_next(*_VALUE_KINDS)

            if token.kind is TokenKind.STRING:
                value = token.text[1:-1]
            elif token.kind is TokenKind.NUMBER:
                value = float(token.text) if "." in token.text else int(token.text)
            elif token.kind is TokenKind.BOOL:
                value = token.text.lower() == "true"

        return Comparison(attribute_path, operator, value)

    def _parse_connective(self, stream: Stream, left: Node, in_value_path: bool) -> Connective:
        """
        Parse ``left (and|or) operand (and|or) operand ...``.

        Runs of ``and`` operands become one conjunction each and those are
        joined by ``or``. Folding goes right to left: a right-hand side of the
        same connective type (e.g. a parenthesized ``(b and c)``) is absorbed
        instead of nested.
        """
        groups: list[list[Node]] = [[left]]

        while stream.is_next(TokenKind.LOG_OP):
            log_op = stream.match_next(TokenKind.LOG_OP)
            is_conjunction = log_op.text.strip().lower() == "and"

            operand = self._parse_operand(stream, in_value_path)
            if operand is None:
                raise FilterSyntaxError(
                    f"Expected an expression after '{log_op.text.strip()}', got an empty group.",
                    token=log_op.text,
                    position=log_op.position,
                    expression=stream.source,
                )

            if is_conjunction:
                groups[-1].append(operand)
            else:
                groups.append([operand])

        terms = [self._fold(group, Conjunction) for group in groups]
        node = self._fold(terms, Disjunction)

        assert isinstance(node, Connective)
        return node

    @staticmethod
    def _fold(operands: list[Node], connective: type[Connective]) -> Node:
        node = operands[-1]
        for operand in reversed(operands[:-1]):
            if isinstance(node, connective):
                node = connective([operand, *node.children])
            else:
                node = connective([operand, node])
        return node

    def _prefix_attribute_paths(self, attribute_path: AttributePath, node: Node) -> Node:
        """Prefix every comparison below ``node`` with the value path's attribute."""
        if isinstance(node, Comparison):
            node.path = AttributePath(attribute_path.schema, attribute_path.names + node.path.names)
            logger.debug(f"Rewrote value path comparison to '{node.path.full_name}'")
            return node

        if isinstance(node, Negation):
            node.inner = self._prefix_attribute_paths(attribute_path, node.inner)
            return node

        if isinstance(node, Connective):
            for child in node.children:
                self._prefix_attribute_paths(attribute_path, child)
            return node

        raise InternalConsistencyError(
            f"Cannot prefix attribute path '{attribute_path.full_name}' on {type(node).__name__}."
        )


class FilterParser(BaseParser):
    """Parser for ``filter`` query parameters and request bodies."""

    def __init__(self, settings: ParserSettings | None = None) -> None:
        super().__init__(ParserMode.FILTER, settings)

    def parse(self, text: str) -> Node | None:
        """
        Parse a SCIM filter.

        Returns:
            The root node, or None for an empty or whitespace-only filter.

        Raises:
            FilterSyntaxError: If the filter is malformed.
            InvalidValuePathError: If a value path is used where it is not allowed.
            FilterLimitError: If the filter exceeds the configured limits.
        """
        logger.debug(f"Parsing SCIM filter {text!r}")
        try:
            stream = self._tokenize_input(text)

            if not stream.has_next():
                logger.debug("SCIM filter is empty")
                return None

            node = self.parse_inner(stream)
            self._expect_end(stream)
        except FilterSyntaxError as e:
            # Errors from parenthesized groups only saw the group's text.
            e.expression = text
            raise

        return node


class PathParser(BaseParser):
    """
    Parser for PATCH operation ``path`` values (RFC 7644 §3.5.2).

    Accepts ``attrPath`` or ``valuePath [ "." subAttr ]``: a bare attribute
    path yields an ``AttributePath``, a filtered one a ``ValuePath`` whose
    ``sub_attribute`` holds the optional trailing sub-attribute name.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        super().__init__(ParserMode.PATH, settings)

    def parse(self, text: str) -> AttributePath | ValuePath | None:
        """
        Parse a SCIM PATCH path.

        Returns:
            The target, or None for an empty or whitespace-only path.

        Raises:
            FilterSyntaxError: If the path is malformed (``scim_type`` is ``invalidPath``).
            InvalidValuePathError: If a value path is used where it is not allowed.
            FilterLimitError: If the path exceeds the configured limits.
        """
        logger.debug(f"Parsing SCIM path {text!r}")
        try:
            stream = self._tokenize_input(text)

            if not stream.has_next():
                logger.debug("SCIM path is empty")
                return None

            target = self._parse_path(stream)
            self._expect_end(stream)
        except FilterSyntaxError as e:
            e.scim_type = "invalidPath"
            e.expression = text
            raise

        return target

    def _parse_path(self, stream: Stream) -> AttributePath | ValuePath:
        token = stream.match_next(TokenKind.NAME)
        attribute_path = self._parse_attribute_name(token)

        if not stream.is_next(TokenKind.BRACKET_OPEN):
            return attribute_path

        if len(attribute_path) != 1:
            raise InvalidValuePathError(
                f"Value path '{token.text}[...]' is only allowed on a top-level attribute.",
                token=token.text,
                position=token.position,
                expression=stream.source,
            )

        value_path = self._parse_value_path(stream, attribute_path)

        if stream.is_next(TokenKind.SUBATTR):
            value_path.sub_attribute = stream.match_next(TokenKind.SUBATTR).text[1:]

        return value_path


_default_filter_parser = FilterParser()
_default_path_parser = PathParser()


def parse_filter(text: str) -> Node | None:
    """Parse a SCIM filter with default settings. See ``FilterParser.parse``."""
    return _default_filter_parser.parse(text)


def parse_path(text: str) -> AttributePath | ValuePath | None:
    """Parse a SCIM PATCH path with default settings. See ``PathParser.parse``."""
    return _default_path_parser.parse(text)
