# Rule interface (abstract base class): defines the contract all rules must implement.
# Concrete rules (strict_declaration, function_comment, etc.) subclass Rule and implement run().

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from phpsniff.context import FileContext
from phpsniff.findings.models import Finding, Location
from phpsniff.tokens import Token

if TYPE_CHECKING:
    from phpsniff.config import Config


class Rule(ABC):
    """
    Abstract base class for all standards rules.

    Subclasses must define:
    - id: str: unique rule identifier (e.g. "strict-declaration")
    - name: str: human-readable rule name (e.g. "Strict type declaration")
    - run(context, config) -> list[Finding]: check one file and return findings

    The pipeline calls run() once per file; context holds path, source bytes,
    tree and token stream. config carries the run-wide symbol table.
    """

    id: str
    name: str
    severity: str = "error"

    @abstractmethod
    def run(self, context: FileContext, config: Optional[Config]) -> list[Finding]:
        """
        Check one file and return any findings.

        Args:
            context: Per-file state (path, source bytes, tree, tokens).
            config: Run configuration, or None when a rule is driven directly
                    (tests); rules must then fall back to an empty symbol table.

        Returns:
            List of Finding objects, empty if the file conforms.
        """
        ...

    def finding_at_token(
        self,
        context: FileContext,
        token: Token,
        code: str,
        message: str,
    ) -> Finding:
        """Build a Finding located at a token, using the token's line as snippet."""
        return Finding(
            rule_id=self.id,
            code=code,
            message=message,
            location=Location(
                path=context.path,
                line=token.line,
                column=token.column,
                snippet=_line_text(context, token.line),
            ),
            severity=self.severity,
        )


def _line_text(context: FileContext, line: int) -> Optional[str]:
    lines = context.source.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1].decode("utf-8", errors="replace")
    return None
