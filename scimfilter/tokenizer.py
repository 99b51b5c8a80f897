"""
Table-driven tokenizer for SCIM filter and path expressions.

Patterns are tried in declaration order at every position and the first one
that matches wins. Keywords and operators are told apart from attribute names
by that order together with the whitespace each operator pattern requires
around itself, so there is no separate keyword table.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from .exceptions import FilterSyntaxError


class TokenKind(Enum):
    """Token kinds produced by the tokenizer."""

    NUMBER = "number"
    STRING = "string"
    BOOL = "boolean"
    NULL = "null"
    PAREN_OPEN = "'('"
    PAREN_CLOSE = "')'"
    BRACKET_OPEN = "'['"
    BRACKET_CLOSE = "']'"
    NEGATION = "'not'"
    LOG_OP = "logical operator"
    COMP_OP = "comparison operator"
    NAME = "attribute path"
    SUBATTR = "sub-attribute"


@dataclass(frozen=True, slots=True)
class Token:
    """A token and where it starts in the tokenized string."""

    kind: TokenKind
    text: str
    position: int

    @property
    def end(self) -> int:
        return self.position + len(self.text)


_ATTR_SEGMENT = r"[\-_a-z0-9]+"

# Order matters: the first pattern matching at a position wins.
FILTER_PATTERNS: tuple[tuple[TokenKind, str], ...] = (
    (TokenKind.NUMBER, r"\d+(?:\.\d+)?"),
    (TokenKind.STRING, r'"[^"]*"'),
    # Literals must not swallow the head of a name such as "nullable".
    (TokenKind.BOOL, r"(?:true|false)(?![\-_a-z0-9.:])"),
    (TokenKind.NULL, r"null(?![\-_a-z0-9.:])"),
    (TokenKind.PAREN_OPEN, r"\("),
    (TokenKind.PAREN_CLOSE, r"\)"),
    (TokenKind.BRACKET_OPEN, r"\["),
    (TokenKind.BRACKET_CLOSE, r"\]"),
    (TokenKind.NEGATION, r"not(?:\s+|(?=\())"),
    (TokenKind.LOG_OP, r"\s+(?:and|or)\s+"),
    (TokenKind.COMP_OP, r"\s(?:(?:eq|ne|co|sw|ew|gt|lt|ge|le)\s+|pr)"),
    (
        TokenKind.NAME,
        rf'(?:[^\s"()\[\]]+:)?{_ATTR_SEGMENT}(?:\.{_ATTR_SEGMENT})*',
    ),
)

SUBATTR_PATTERN: tuple[TokenKind, str] = (TokenKind.SUBATTR, rf"\.{_ATTR_SEGMENT}(?=\s*\Z)")


class Stream:
    """
    Read cursor over the tokens of one string.

    The stream keeps the source string so that ``join_until`` can hand back
    the exact substring a run of tokens was read from.
    """

    def __init__(self, source: str, tokens: Iterable[Token], offset: int = 0) -> None:
        self.source = source
        self.offset = offset
        self.tokens: tuple[Token, ...] = tuple(tokens)
        self.index = 0

    def __len__(self) -> int:
        return len(self.tokens)

    def __repr__(self) -> str:
        return f"Stream({self.source!r}, index={self.index}/{len(self.tokens)})"

    def _peek(self) -> Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    @property
    def position(self) -> int:
        """Position of the next token in the original input, or the end of the source."""
        token = self._peek()
        if token is not None:
            return token.position
        return self.offset + len(self.source)

    def has_next(self) -> bool:
        return self.index < len(self.tokens)

    def is_next(self, *kinds: TokenKind) -> bool:
        """Whether the next token is one of ``kinds``. Does not consume."""
        token = self._peek()
        return token is not None and token.kind in kinds

    def next_value(self) -> str:
        """Raw text of the next token, or an empty string at the end."""
        token = self._peek()
        return token.text if token is not None else ""

    def match_next(self, *kinds: TokenKind) -> Token:
        """
        Consume and return the next token if it is one of ``kinds``.

        Raises:
            FilterSyntaxError: On any other token or at the end of the stream.
        """
        token = self._peek()
        expected = " or ".join(kind.value for kind in kinds)

        if token is None:
            raise FilterSyntaxError(
                f"Unexpected end of input, expected {expected}.",
                position=self.position,
                expression=self.source,
            )
        if token.kind not in kinds:
            raise FilterSyntaxError(
                f"Unexpected '{token.text.strip()}', expected {expected}.",
                token=token.text,
                position=token.position,
                expression=self.source,
            )

        self.index += 1
        return token

    def join_until(self, kind: TokenKind, *, opening: TokenKind | None = None) -> str:
        """
        Consume tokens up to (not including) the next ``kind`` token.

        Returns the source substring spanned by the consumed tokens, or an
        empty string if the next token already is ``kind``. When ``opening``
        is given, ``opening``/``kind`` pairs inside the span are balanced so
        the matching ``kind`` token ends the run instead of the first one.
        If no terminating token exists the rest of the stream is consumed.
        """
        start = self.index
        depth = 0

        while self.index < len(self.tokens):
            token = self.tokens[self.index]
            if token.kind is kind:
                if depth == 0:
                    break
                depth -= 1
            elif opening is not None and token.kind is opening:
                depth += 1
            self.index += 1

        if self.index == start:
            return ""

        first = self.tokens[start]
        last = self.tokens[self.index - 1]
        return self.source[first.position - self.offset : last.end - self.offset]


class Tokenizer:
    """Turns strings into token streams using an ordered pattern table."""

    def __init__(self, patterns: Sequence[tuple[TokenKind, str]]) -> None:
        self._patterns: tuple[tuple[TokenKind, re.Pattern[str]], ...] = tuple(
            (kind, re.compile(pattern, re.IGNORECASE)) for kind, pattern in patterns
        )

    @property
    def kinds(self) -> frozenset[TokenKind]:
        return frozenset(kind for kind, _ in self._patterns)

    def tokenize(self, text: str, offset: int = 0) -> Stream:
        """
        Tokenize ``text``.

        Whitespace that no pattern claims is skipped. Operator patterns that
        need surrounding whitespace are tried before it is skipped. ``offset``
        is added to token positions when ``text`` is a slice of a larger input.

        Raises:
            FilterSyntaxError: On a character no pattern accepts.
        """
        tokens: list[Token] = []
        pos = 0
        length = len(text)

        while pos < length:
            for kind, pattern in self._patterns:
                match = pattern.match(text, pos)
                if match is not None and match.end() > pos:
                    tokens.append(Token(kind, match.group(0), offset + pos))
                    pos = match.end()
                    break
            else:
                if text[pos].isspace():
                    pos += 1
                    continue
                raise FilterSyntaxError(
                    f"Unexpected character '{text[pos]}'.",
                    token=text[pos],
                    position=offset + pos,
                    expression=text,
                )

        return Stream(text, tokens, offset)
