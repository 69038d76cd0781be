# Tree-sitter setup for PHP: grammar selection and parsing of PHP files into trees.

import logging
from pathlib import Path
from typing import Optional

import tree_sitter
from tree_sitter import Language
import tree_sitter_php

logger = logging.getLogger(__name__)

# Two grammars ship with tree-sitter-php: "php" understands inline HTML around
# <?php ... ?> blocks, "php_only" assumes the whole file is PHP code.
_PHP_LANGUAGE = Language(tree_sitter_php.language_php())
_PHP_ONLY_LANGUAGE = Language(tree_sitter_php.language_php_only())


def get_php_language(php_only: bool = False) -> Language:
    """Return the Tree-sitter Language for PHP files (or bare PHP code)."""
    return _PHP_ONLY_LANGUAGE if php_only else _PHP_LANGUAGE


def create_parser(php_only: bool = False) -> tree_sitter.Parser:
    """
    Create a Parser for PHP.

    Rules work on whole files, so the default grammar is the one that keeps
    the open tag and any inline HTML in the tree.
    """
    return tree_sitter.Parser(get_php_language(php_only))


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse PHP source bytes into a syntax tree.

    Args:
        source: UTF-8 encoded PHP source, starting with inline HTML or an open tag.
        parser: Optional parser instance; if None, a new one is created.

    Returns:
        The parse tree. tree.root_node.has_error is set when the input was
        malformed; the tree then contains ERROR/MISSING nodes.
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning("PHP parse completed with errors (%d bytes)", len(source))
    else:
        logger.debug("PHP parse succeeded (%d bytes)", len(source))
    return tree


def parse_file(path: Path, parser: Optional[tree_sitter.Parser] = None) -> Optional[tree_sitter.Tree]:
    """Parse a PHP file; returns None (and logs) if it cannot be read."""
    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None
    tree = parse_bytes(source, parser=parser)
    logger.info("Parsed file %s: success=%s", path, not tree.root_node.has_error)
    return tree
