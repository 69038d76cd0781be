# Function comment check: every function/method needs a /** */ doc comment directly
# above it, with non-empty @see tags, a justified {@inheritdoc}, and a @return tag
# that agrees with the return statements in the body.

from __future__ import annotations

import logging
import re
from typing import Optional

from tree_sitter import Node as TSNode

from phpsniff.context import FUNCTION_NODE_TYPES, FileContext, get_source_span, walk
from phpsniff.docblock import DocBlock, DocTag, parse_docblock
from phpsniff.findings.models import Finding, Location
from phpsniff.rules.base import Rule
from phpsniff.symbols import FileScope, SymbolTable, build_symbol_table, scan_file
from phpsniff.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

SPECIAL_METHODS = frozenset({"__construct", "__destruct"})

# Nested scopes whose return statements belong to someone else
NESTED_SCOPE_TYPES = frozenset(
    {
        "anonymous_function",
        "anonymous_function_creation_expression",
        "arrow_function",
        "anonymous_class",
        "function_definition",
        "class_declaration",
        "declaration_list",
    }
)

RETURN_TYPE_RE = re.compile(r"^((?:\|?(?:array\([^\)]*\)|[\\a-z0-9\[\]]+))*)( .*)?", re.IGNORECASE)


def _is_public_concrete(context: FileContext, node: TSNode) -> bool:
    visibility = "public"
    for child in node.named_children:
        if child.type == "visibility_modifier":
            visibility = get_source_span(context, child).lower()
        elif child.type == "abstract_modifier":
            return False
    return visibility == "public"


def _first_exit(body: TSNode) -> Optional[TSNode]:
    """First return statement or yield in the body, skipping nested scopes."""
    stack = list(reversed(body.children))
    while stack:
        node = stack.pop()
        if node.type in NESTED_SCOPE_TYPES:
            continue
        if node.type in ("return_statement", "yield_expression"):
            return node
        stack.extend(reversed(node.children))
    return None


def _returns_value(exit_node: TSNode) -> bool:
    """False for a bare `return;` or `yield;`."""
    return any(child.type != "comment" for child in exit_node.named_children)


class FunctionCommentRule(Rule):
    """Checks function and method doc comments (presence, placement, tags, @return)."""

    id = "function-comment"
    name = "Function comment"

    def run(self, context: FileContext, config) -> list[Finding]:
        symbols: Optional[SymbolTable] = getattr(config, "symbols", None)
        if symbols is None:
            symbols = build_symbol_table([context])
        scope = scan_file(context)
        findings: list[Finding] = []
        for node in walk(context.root_node):
            if node.type in FUNCTION_NODE_TYPES:
                findings.extend(self._check_function(context, node, scope, symbols))
        return findings

    # -- helpers -----------------------------------------------------------

    def _function_token(self, context: FileContext, node: TSNode) -> Optional[int]:
        start = context.tokens.index_of_node(node)
        if start is None:
            return None
        return context.tokens.find_next(TokenKind.FUNCTION, start)

    def _comment_before(self, context: FileContext, node: TSNode) -> Optional[int]:
        """Index of the comment that documents node, or of whatever precedes it."""
        tokens = context.tokens
        start = tokens.index_of_node(node)
        if start is None or start == 0:
            return None
        comment_ptr = tokens.find_previous(TokenKind.WHITESPACE, start - 1, exclude=True)
        if comment_ptr is None:
            return None
        if tokens[comment_ptr].kind is TokenKind.COMMENT and comment_ptr > 0:
            # A trailing comment on a line of code belongs to that code
            prev = tokens.find_previous(TokenKind.WHITESPACE, comment_ptr - 1, exclude=True)
            if prev is not None and tokens[prev].line == tokens[comment_ptr].line:
                return prev
        return comment_ptr

    def _tag_finding(self, context: FileContext, tag: DocTag, code: str, message: str) -> Finding:
        return Finding(
            rule_id=self.id,
            code=code,
            message=message,
            location=Location(path=context.path, line=tag.line, column=tag.column),
            severity=self.severity,
        )

    def _is_test_method(
        self,
        context: FileContext,
        node: TSNode,
        scope: FileScope,
        symbols: SymbolTable,
        method_name: str,
    ) -> bool:
        if node.type != "method_declaration":
            return False
        owner = scope.class_at(node)
        if owner is None or not symbols.is_test_class(owner.name):
            return False
        return _is_public_concrete(context, node) and method_name.lower().startswith("test")

    # -- checks ------------------------------------------------------------

    def _check_function(
        self,
        context: FileContext,
        node: TSNode,
        scope: FileScope,
        symbols: SymbolTable,
    ) -> list[Finding]:
        tokens = context.tokens
        function_ptr = self._function_token(context, node)
        name_node = node.child_by_field_name("name")
        if function_ptr is None or name_node is None:
            return []
        function_token = tokens[function_ptr]
        method_name = get_source_span(context, name_node)

        comment_ptr = self._comment_before(context, node)
        comment: Optional[Token] = tokens[comment_ptr] if comment_ptr is not None else None

        if comment is None or comment.kind not in (TokenKind.DOC_COMMENT, TokenKind.COMMENT):
            if self._is_test_method(context, node, scope, symbols, method_name):
                logger.debug("Skipping undocumented test method %s in %s", method_name, context.path)
                return []
            return [
                self.finding_at_token(context, function_token, "Missing", "Missing function doc comment")
            ]

        if comment.kind is TokenKind.COMMENT:
            return [
                self.finding_at_token(
                    context,
                    function_token,
                    "WrongStyle",
                    'You must use "/**" style comments for a function comment',
                )
            ]

        findings: list[Finding] = []
        block = parse_docblock(comment)

        if block.end_line != function_token.line - 1:
            findings.append(
                self.finding_at_token(
                    context,
                    comment,
                    "SpacingAfter",
                    "There must be no blank lines after the function comment",
                )
            )

        for tag in block.tags_named("@see"):
            if not tag.content:
                findings.append(
                    self._tag_finding(context, tag, "EmptySees", "Content missing for @see tag in function comment")
                )

        if block.has_inheritdoc:
            owner = scope.class_at(node) if node.type == "method_declaration" else None
            inherited = symbols.inherits_method(owner.name, method_name) if owner is not None else False
            if inherited is None or inherited:
                return findings
            findings.append(
                self.finding_at_token(
                    context,
                    comment,
                    "InvalidInheritdoc",
                    "No override method found for {@inheritdoc} annotation",
                )
            )

        findings.extend(self._check_return(context, node, block, method_name))
        return findings

    def _check_return(
        self,
        context: FileContext,
        node: TSNode,
        block: DocBlock,
        method_name: str,
    ) -> list[Finding]:
        returns = block.tags_named("@return")
        if len(returns) > 1:
            return [
                self._tag_finding(
                    context, returns[1], "DuplicateReturn", "Only 1 @return tag is allowed in a function comment"
                )
            ]

        if method_name.lower() in SPECIAL_METHODS:
            return []

        if not returns:
            return [
                Finding(
                    rule_id=self.id,
                    code="MissingReturn",
                    message="Missing @return tag in function comment",
                    location=Location(path=context.path, line=block.end_line, column=block.closer_column),
                    severity=self.severity,
                )
            ]

        tag = returns[0]
        if not tag.content:
            return [
                self._tag_finding(
                    context, tag, "MissingReturnType", "Return type missing for @return tag in function comment"
                )
            ]

        return_type = RETURN_TYPE_RE.match(tag.content).group(1)
        type_names = return_type.split("|")
        body = node.child_by_field_name("body")
        if body is None:
            return []

        exit_node = _first_exit(body)
        if return_type == "void":
            if exit_node is not None and _returns_value(exit_node):
                return [
                    self._tag_finding(
                        context,
                        tag,
                        "InvalidReturnVoid",
                        "Function return type is void, but function contains return statement",
                    )
                ]
            return []

        if return_type == "mixed" or "void" in type_names:
            return []

        if exit_node is None:
            return [
                self._tag_finding(
                    context,
                    tag,
                    "InvalidNoReturn",
                    "Function return type is not void, but function has no return statement",
                )
            ]
        if not _returns_value(exit_node):
            exit_ptr = context.tokens.index_of_node(exit_node)
            return [
                self.finding_at_token(
                    context,
                    context.tokens[exit_ptr],
                    "InvalidReturnNotVoid",
                    "Function return type is not void, but function is returning void here",
                )
            ]
        return []
