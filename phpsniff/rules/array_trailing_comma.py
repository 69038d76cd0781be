# Forbidden trailing comma: single-line array literals must not end with `,`.

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode

from phpsniff.context import FileContext, get_line_col, walk
from phpsniff.findings.models import Finding, Location
from phpsniff.rules.base import Rule

_CLOSERS = frozenset({"]", ")"})


def _trailing_comma(array_node: TSNode) -> Optional[TSNode]:
    """The comma directly before the array's closing bracket, if on the same line."""
    children = [c for c in array_node.children if c.type != "comment"]
    if len(children) < 2 or children[-1].type not in _CLOSERS:
        return None
    candidate, closer = children[-2], children[-1]
    if candidate.type != "," or candidate.start_point[0] != closer.start_point[0]:
        return None
    return candidate


class ForbiddenArrayTrailingCommaRule(Rule):
    id = "forbidden-array-trailing-comma"
    name = "Forbidden array trailing comma"

    def run(self, context: FileContext, config) -> list[Finding]:
        findings: list[Finding] = []
        for node in walk(context.root_node):
            if node.type != "array_creation_expression":
                continue
            comma = _trailing_comma(node)
            if comma is None:
                continue
            line, col = get_line_col(context, comma)
            findings.append(
                Finding(
                    rule_id=self.id,
                    code="TrailingComma",
                    message="Single-line arrays must not have a trailing comma",
                    location=Location(path=context.path, line=line, column=col),
                    severity=self.severity,
                )
            )
        return findings
