# Per-file analysis context: path, source bytes, parse tree and token stream.
# Handles reading/parsing PHP files, error handling for unreadable/malformed files,
# and logging of declaration counts so trees are ready for rules.

import logging
from pathlib import Path
from typing import Iterator, Optional

from tree_sitter import Node as TSNode
from tree_sitter import Parser, Tree

from phpsniff.parser import create_parser, parse_bytes
from phpsniff.tokens import TokenStream, tokenize

logger = logging.getLogger(__name__)

FUNCTION_NODE_TYPES = frozenset({"function_definition", "method_declaration"})
CLASS_LIKE_NODE_TYPES = frozenset(
    {"class_declaration", "interface_declaration", "trait_declaration", "enum_declaration"}
)


def walk(node: TSNode) -> Iterator[TSNode]:
    """Yield every descendant of node in document order (DFS)."""
    yield node
    for child in node.children:
        yield from walk(child)


def count_tree_stats(root: TSNode) -> tuple[int, int, int]:
    """Return (total node count, class-like count, function/method count)."""
    nodes = classes = functions = 0
    for node in walk(root):
        nodes += 1
        if node.type in CLASS_LIKE_NODE_TYPES:
            classes += 1
        elif node.type in FUNCTION_NODE_TYPES:
            functions += 1
    return nodes, classes, functions


class FileContext:
    """
    Per-file state for analysis: path, raw source bytes, tree and tokens.

    Rules use context.path, context.source, context.tree and context.tokens.
    The token stream is built on first access and cached.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors
        self._tokens: Optional[TokenStream] = None

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the tree root."""
        return self.tree.root_node

    @property
    def tokens(self) -> TokenStream:
        if self._tokens is None:
            self._tokens = tokenize(self.source, self.tree)
        return self._tokens

    @classmethod
    def from_source(cls, source: bytes, path: Path = Path("test.php")) -> "FileContext":
        """Parse in-memory source; handy for tests and for stdin input."""
        tree = parse_bytes(source)
        return cls(path=path, source=source, tree=tree, has_parse_errors=tree.root_node.has_error)


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(context: FileContext, node: TSNode) -> tuple[int, int]:
    """
    Return 1-based (line, column) for the node's start.

    Columns come from the token stream so they count characters, matching
    the columns rules compare against.
    """
    idx = context.tokens.index_of_node(node)
    if idx is None:
        row, col = node.start_point
        return row + 1, col + 1
    token = context.tokens[idx]
    return token.line, token.column


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a PHP file and parse it into a FileContext.

    - Unreadable file (permission, missing): returns None and logs error.
    - Malformed PHP (syntax errors): still returns a FileContext with the tree
      and sets has_parse_errors=True; logs a warning.
    - Success: returns FileContext and logs class and function counts.
    """
    if parser is None:
        parser = create_parser()

    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None

    tree = parse_bytes(source, parser=parser)
    has_errors = tree.root_node.has_error
    if has_errors:
        logger.warning("File %s parsed with syntax errors; tree may be incomplete", path)

    node_count, class_count, func_count = count_tree_stats(tree.root_node)
    logger.info(
        "Parsed %s: %d nodes, %d class(es), %d function(s)%s",
        path,
        node_count,
        class_count,
        func_count,
        " (with parse errors)" if has_errors else "",
    )

    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=has_errors,
    )


def load_contexts(
    paths: list[Path],
    parser: Optional[Parser] = None,
) -> list[FileContext]:
    """
    Read and parse multiple PHP files into FileContexts.

    Unreadable or missing files are skipped (logged); malformed files still
    get a context with has_parse_errors=True. Order matches input order.
    """
    if parser is None:
        parser = create_parser()

    contexts: list[FileContext] = []
    for path in paths:
        ctx = create_context(path, parser=parser)
        if ctx is not None:
            contexts.append(ctx)
    return contexts
