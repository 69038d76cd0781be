# Strict declaration check: the file must open with `declare(strict_types=1);`
# on the line right after the open tag, at column 1, with no inner whitespace.

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel

from phpsniff.context import FileContext
from phpsniff.findings.models import Finding
from phpsniff.rules.base import Rule
from phpsniff.tokens import TokenKind, TokenStream

logger = logging.getLogger(__name__)

EXPECTED_DIRECTIVE = "strict_types"
EXPECTED_VALUE = "1"

# Token kinds that must follow the declare keyword, in order and adjacent
DECLARATION_SHAPE = (
    TokenKind.OPEN_PARENTHESIS,
    TokenKind.STRING,
    TokenKind.EQUAL,
    TokenKind.LNUMBER,
    TokenKind.CLOSE_PARENTHESIS,
    TokenKind.SEMICOLON,
)


class DeclarationFailure(str, Enum):
    """Reason codes reported for a bad or missing declaration."""

    MISSING_DECLARATION = "MissingDeclaration"
    WRONG_POSITION = "WrongPosition"
    LEADING_SPACE = "LeadingSpace"
    INVALID_DECLARATION = "InvalidDeclaration"


FAILURE_MESSAGES: dict[DeclarationFailure, str] = {
    DeclarationFailure.MISSING_DECLARATION: "Strict type declaration not found in file",
    DeclarationFailure.WRONG_POSITION: (
        "Strict type declaration must be on the line immediately following the opening tag"
    ),
    DeclarationFailure.LEADING_SPACE: (
        "Strict type declaration must be on it's own line with no leading spaces"
    ),
    DeclarationFailure.INVALID_DECLARATION: (
        "Strict type declaration invalid, must be `declare(strict_types=1);`"
    ),
}


class Passed(BaseModel):
    ok: Literal[True] = True

    model_config = {"frozen": True}


class Failed(BaseModel):
    ok: Literal[False] = False
    reason: DeclarationFailure
    position: int

    model_config = {"frozen": True}


ValidationResult = Union[Passed, Failed]


def validate(stream: TokenStream, start: int) -> ValidationResult:
    """
    Check the strict_types declaration following the open tag at ``start``.

    The first failing check decides the result; at most one reason is
    returned. Pure function of its inputs.
    """
    declaration_ptr = stream.find_next(TokenKind.DECLARE, start)
    if declaration_ptr is None:
        return Failed(reason=DeclarationFailure.MISSING_DECLARATION, position=start)

    open_tag = stream[start]
    declaration = stream[declaration_ptr]

    if declaration.line != open_tag.line + 1:
        return Failed(reason=DeclarationFailure.WRONG_POSITION, position=start)

    if declaration.column != 1:
        return Failed(reason=DeclarationFailure.LEADING_SPACE, position=start)

    # Each search continues from the previous match, not from the keyword
    pointers: list[int] = []
    ptr = declaration_ptr
    for kind in DECLARATION_SHAPE:
        found = stream.find_next(kind, ptr)
        if found is None:
            return Failed(reason=DeclarationFailure.INVALID_DECLARATION, position=start)
        pointers.append(found)
        ptr = found

    parts = [stream[p] for p in pointers]
    directive, value = parts[1], parts[3]
    if directive.content != EXPECTED_DIRECTIVE or value.content != EXPECTED_VALUE:
        return Failed(reason=DeclarationFailure.INVALID_DECLARATION, position=start)

    previous = declaration
    for token in parts:
        if token.line != declaration.line or token.column != previous.end_column:
            return Failed(reason=DeclarationFailure.INVALID_DECLARATION, position=start)
        previous = token

    return Passed()


def find_open_tag(stream: TokenStream) -> Optional[int]:
    """Index of the first `<?php` tag, or None for pure inline HTML and echo-only templates."""
    return stream.find_next(TokenKind.OPEN_TAG, 0)


class StrictDeclarationRule(Rule):
    """Requires `declare(strict_types=1);` directly below the first open tag."""

    id = "strict-declaration"
    name = "Strict type declaration"

    def run(self, context: FileContext, config) -> list[Finding]:
        stream = context.tokens
        start = find_open_tag(stream)
        if start is None:
            logger.debug("No open tag in %s; skipping strict declaration check", context.path)
            return []

        result = validate(stream, start)
        if isinstance(result, Passed):
            return []

        return [
            self.finding_at_token(
                context,
                stream[result.position],
                result.reason.value,
                FAILURE_MESSAGES[result.reason],
            )
        ]
