# Yoda condition detection: comparisons must put the variable side first (`$x === null`).

from __future__ import annotations

from tree_sitter import Node as TSNode

from phpsniff.context import FileContext, get_line_col, get_source_span, walk
from phpsniff.findings.models import Finding, Location
from phpsniff.rules.base import Rule

COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<>", "<", "<=", ">", ">="})

# Operands that are fixed values: literals, global constants, class constants
CONSTANT_NODE_TYPES = frozenset(
    {
        "integer",
        "float",
        "string",
        "encapsed_string",
        "heredoc",
        "nowdoc",
        "boolean",
        "null",
        "name",
        "qualified_name",
        "class_constant_access_expression",
    }
)


def _is_constant(node: TSNode) -> bool:
    if node.type == "parenthesized_expression" and node.named_child_count == 1:
        return _is_constant(node.named_children[0])
    if node.type == "encapsed_string":
        # "Hello $name" is not a fixed value
        return not any(c.type in ("variable_name", "member_access_expression") for c in walk(node))
    return node.type in CONSTANT_NODE_TYPES


def _operator(node: TSNode) -> str | None:
    op = node.child_by_field_name("operator")
    return op.type if op is not None else None


class YodaConditionRule(Rule):
    """Flags comparisons with a constant on the left and a non-constant on the right."""

    id = "yoda-condition"
    name = "Yoda condition"

    def run(self, context: FileContext, config) -> list[Finding]:
        findings: list[Finding] = []
        for node in walk(context.root_node):
            if node.type != "binary_expression" or _operator(node) not in COMPARISON_OPERATORS:
                continue
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is None or right is None:
                continue
            if not _is_constant(left) or _is_constant(right):
                continue
            line, col = get_line_col(context, node)
            findings.append(
                Finding(
                    rule_id=self.id,
                    code="YodaCondition",
                    message=(
                        f"Yoda condition '{get_source_span(context, node)}': "
                        "put the constant on the right-hand side of the comparison."
                    ),
                    location=Location(
                        path=context.path,
                        line=line,
                        column=col,
                        snippet=get_source_span(context, node),
                    ),
                    severity=self.severity,
                )
            )
        return findings
