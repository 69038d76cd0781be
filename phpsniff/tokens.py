"""
Token stream: flatten a tree-sitter PHP tree into positioned lexical tokens.

Several rules are defined in terms of the PHP tokenizer's view of a file
(exact columns, adjacency, "next token of kind K") rather than the syntax
tree. This module rebuilds that view from the tree-sitter leaves so those
rules can scan linearly.

Typical usage:
    from phpsniff.tokens import TokenKind, tokenize

    stream = tokenize(source, tree)
    ptr = stream.find_next(TokenKind.DECLARE, 0)
    if ptr is not None:
        print(stream[ptr].line, stream[ptr].column)

Columns and lengths count characters (not bytes) and columns are 1-based, so
two tokens are adjacent exactly when ``b.column == a.column + a.length``.
"""

from __future__ import annotations

import bisect
import logging
from enum import Enum
from typing import Iterable, Iterator, Optional, Sequence, Union, overload

from pydantic import BaseModel, Field
from tree_sitter import Node as TSNode
from tree_sitter import Tree

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    """Token kinds, named after the PHP tokenizer constants they stand in for."""

    OPEN_TAG = "T_OPEN_TAG"
    OPEN_TAG_WITH_ECHO = "T_OPEN_TAG_WITH_ECHO"
    CLOSE_TAG = "T_CLOSE_TAG"
    INLINE_HTML = "T_INLINE_HTML"
    DECLARE = "T_DECLARE"
    OPEN_PARENTHESIS = "T_OPEN_PARENTHESIS"
    CLOSE_PARENTHESIS = "T_CLOSE_PARENTHESIS"
    OPEN_SQUARE_BRACKET = "T_OPEN_SQUARE_BRACKET"
    CLOSE_SQUARE_BRACKET = "T_CLOSE_SQUARE_BRACKET"
    OPEN_CURLY_BRACKET = "T_OPEN_CURLY_BRACKET"
    CLOSE_CURLY_BRACKET = "T_CLOSE_CURLY_BRACKET"
    STRING = "T_STRING"
    EQUAL = "T_EQUAL"
    LNUMBER = "T_LNUMBER"
    DNUMBER = "T_DNUMBER"
    SEMICOLON = "T_SEMICOLON"
    COMMA = "T_COMMA"
    FUNCTION = "T_FUNCTION"
    RETURN = "T_RETURN"
    YIELD = "T_YIELD"
    VARIABLE = "T_VARIABLE"
    CONSTANT_ENCAPSED_STRING = "T_CONSTANT_ENCAPSED_STRING"
    COMMENT = "T_COMMENT"
    DOC_COMMENT = "T_DOC_COMMENT"
    WHITESPACE = "T_WHITESPACE"
    OTHER = "T_OTHER"


# Named nodes emitted as a single token even though tree-sitter gives them children
ATOMIC_NODE_TYPES = frozenset(
    {
        "comment",
        "string",
        "encapsed_string",
        "heredoc",
        "nowdoc",
        "variable_name",
        "text",
        "php_tag",
    }
)

_NAMED_KINDS: dict[str, TokenKind] = {
    "php_tag": TokenKind.OPEN_TAG,
    "text": TokenKind.INLINE_HTML,
    "name": TokenKind.STRING,
    "integer": TokenKind.LNUMBER,
    "float": TokenKind.DNUMBER,
    "variable_name": TokenKind.VARIABLE,
    "string": TokenKind.CONSTANT_ENCAPSED_STRING,
    "encapsed_string": TokenKind.CONSTANT_ENCAPSED_STRING,
    "heredoc": TokenKind.CONSTANT_ENCAPSED_STRING,
    "nowdoc": TokenKind.CONSTANT_ENCAPSED_STRING,
    "comment": TokenKind.COMMENT,
}

# Anonymous leaves, keyed by lower-cased node type (keywords are case-insensitive)
_ANONYMOUS_KINDS: dict[str, TokenKind] = {
    "?>": TokenKind.CLOSE_TAG,
    "declare": TokenKind.DECLARE,
    "(": TokenKind.OPEN_PARENTHESIS,
    ")": TokenKind.CLOSE_PARENTHESIS,
    "[": TokenKind.OPEN_SQUARE_BRACKET,
    "]": TokenKind.CLOSE_SQUARE_BRACKET,
    "{": TokenKind.OPEN_CURLY_BRACKET,
    "}": TokenKind.CLOSE_CURLY_BRACKET,
    "=": TokenKind.EQUAL,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
    "function": TokenKind.FUNCTION,
    "return": TokenKind.RETURN,
    "yield": TokenKind.YIELD,
    # declare() directive names are plain identifiers to the PHP tokenizer
    "strict_types": TokenKind.STRING,
    "ticks": TokenKind.STRING,
    "encoding": TokenKind.STRING,
}


class Token(BaseModel):
    """One lexical token with its 1-based position and rendered width."""

    kind: TokenKind
    content: str
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    length: int = Field(..., ge=0, description="Width in characters")
    start_byte: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @property
    def end_column(self) -> int:
        """Column at which an adjacent following token has to start."""
        return self.column + self.length


KindSpec = Union[TokenKind, Iterable[TokenKind]]


def _kind_set(kinds: KindSpec) -> frozenset[TokenKind]:
    if isinstance(kinds, TokenKind):
        return frozenset({kinds})
    return frozenset(kinds)


class TokenStream(Sequence[Token]):
    """
    Read-only, indexable sequence of tokens for one file.

    Searches mirror the classic tokenizer helpers: ``find_next`` looks at
    ``start`` itself first, so chained searches may pass the index returned by
    the previous search straight back in.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: list[Token] = list(tokens)
        self._starts: list[int] = [t.start_byte for t in self._tokens]

    @overload
    def __getitem__(self, index: int) -> Token: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Token]: ...

    def __getitem__(self, index):
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def find_next(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
    ) -> Optional[int]:
        """
        Return the index of the first token at or after ``start`` whose kind
        is in ``kinds`` (or, with ``exclude=True``, is not in ``kinds``).

        ``end`` is exclusive and defaults to the end of the stream. Returns
        None when nothing matches.
        """
        wanted = _kind_set(kinds)
        stop = len(self._tokens) if end is None else min(end, len(self._tokens))
        for i in range(max(start, 0), stop):
            if (self._tokens[i].kind in wanted) != exclude:
                return i
        return None

    def find_previous(
        self,
        kinds: KindSpec,
        start: int,
        end: Optional[int] = None,
        exclude: bool = False,
    ) -> Optional[int]:
        """
        Backwards counterpart of find_next: scans from ``start`` down to
        ``end`` (inclusive, default 0).
        """
        wanted = _kind_set(kinds)
        stop = 0 if end is None else max(end, 0)
        for i in range(min(start, len(self._tokens) - 1), stop - 1, -1):
            if (self._tokens[i].kind in wanted) != exclude:
                return i
        return None

    def token_at(self, byte_offset: int) -> Optional[int]:
        """Index of the token covering ``byte_offset``, or None for an empty stream."""
        if not self._tokens:
            return None
        idx = bisect.bisect_right(self._starts, byte_offset) - 1
        return max(idx, 0)

    def index_of_node(self, node: TSNode) -> Optional[int]:
        """Index of the first token of a syntax node."""
        return self.token_at(node.start_byte)


class _LineIndex:
    """Byte offset -> (line, column) conversion for one source buffer."""

    def __init__(self, source: bytes) -> None:
        self.source = source
        self.line_starts = [0]
        for i, byte in enumerate(source):
            if byte == 0x0A:
                self.line_starts.append(i + 1)

    def position(self, offset: int) -> tuple[int, int]:
        line_idx = bisect.bisect_right(self.line_starts, offset) - 1
        prefix = self.source[self.line_starts[line_idx] : offset]
        return line_idx + 1, len(prefix.decode("utf-8", errors="replace")) + 1


def _leaves(node: TSNode) -> Iterator[TSNode]:
    """Yield token-level nodes in document order."""
    if node.child_count == 0 or (node.is_named and node.type in ATOMIC_NODE_TYPES):
        yield node
        return
    for child in node.children:
        yield from _leaves(child)


def _kind_for(node: TSNode, content: str) -> TokenKind:
    if node.is_named:
        kind = _NAMED_KINDS.get(node.type, TokenKind.OTHER)
        if kind is TokenKind.COMMENT and content.startswith("/**"):
            return TokenKind.DOC_COMMENT
        if kind is TokenKind.OPEN_TAG and content.startswith("<?="):
            return TokenKind.OPEN_TAG_WITH_ECHO
        return kind
    return _ANONYMOUS_KINDS.get(node.type.lower(), TokenKind.OTHER)


def _make_token(kind: TokenKind, raw: bytes, start: int, index: _LineIndex) -> Token:
    content = raw.decode("utf-8", errors="replace")
    line, column = index.position(start)
    return Token(
        kind=kind,
        content=content,
        line=line,
        column=column,
        length=len(content),
        start_byte=start,
    )


def _gap_tokens(source: bytes, start: int, end: int, index: _LineIndex) -> Iterator[Token]:
    """Split inter-leaf text into one token per line segment."""
    offset = start
    for piece in source[start:end].splitlines(keepends=True):
        kind = TokenKind.WHITESPACE if not piece.strip() else TokenKind.OTHER
        yield _make_token(kind, piece, offset, index)
        offset += len(piece)


def tokenize(source: bytes, tree: Tree) -> TokenStream:
    """
    Build the token stream for ``source`` from its parse tree.

    Zero-width leaves (tree-sitter MISSING nodes) are dropped; everything else
    in the buffer ends up in exactly one token, whitespace included.
    """
    index = _LineIndex(source)
    tokens: list[Token] = []
    offset = 0
    for node in _leaves(tree.root_node):
        if node.end_byte <= node.start_byte or node.start_byte < offset:
            continue
        if node.start_byte > offset:
            tokens.extend(_gap_tokens(source, offset, node.start_byte, index))
        raw = source[node.start_byte : node.end_byte]
        content = raw.decode("utf-8", errors="replace")
        tokens.append(_make_token(_kind_for(node, content), raw, node.start_byte, index))
        offset = node.end_byte
    if offset < len(source):
        tokens.extend(_gap_tokens(source, offset, len(source), index))

    logger.debug("Tokenized %d bytes into %d tokens", len(source), len(tokens))
    return TokenStream(tokens)
