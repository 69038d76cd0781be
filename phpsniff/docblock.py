# Doc comment parsing: split a /** ... */ comment token into tags with line numbers.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from phpsniff.tokens import Token

_TAG_RE = re.compile(r"^(@[A-Za-z_][\w\\-]*)\s*(.*)$")
_INHERITDOC_RE = re.compile(r"@inheritdoc", re.IGNORECASE)


@dataclass(frozen=True)
class DocTag:
    """A block tag such as `@return int` and the source position of its `@`."""

    name: str
    line: int
    column: int
    content: str


@dataclass
class DocBlock:
    start_line: int
    end_line: int
    closer_column: int = 1
    tags: list[DocTag] = field(default_factory=list)
    has_inheritdoc: bool = False

    def tags_named(self, name: str) -> list[DocTag]:
        return [t for t in self.tags if t.name == name]


def _line_body(raw: str, first: bool, last: bool) -> str:
    """Strip the comment delimiters and the `*` gutter from one comment line."""
    text = raw
    if last:
        text = re.sub(r"\*+/\s*$", "", text)
    if first:
        text = re.sub(r"^\s*/\*\*", "", text)
    else:
        text = re.sub(r"^\s*\*", "", text)
    return text.strip()


def parse_docblock(token: Token) -> DocBlock:
    """Parse a doc comment token into its tags."""
    lines = token.content.split("\n")
    last_base = token.column if len(lines) == 1 else 1
    block = DocBlock(
        start_line=token.line,
        end_line=token.line + len(lines) - 1,
        closer_column=last_base + max(lines[-1].rfind("*/"), 0),
        has_inheritdoc=bool(_INHERITDOC_RE.search(token.content)),
    )
    for offset, raw in enumerate(lines):
        body = _line_body(raw, offset == 0, offset == len(lines) - 1)
        match = _TAG_RE.match(body)
        if not match:
            continue
        base_column = token.column if offset == 0 else 1
        block.tags.append(
            DocTag(
                name=match.group(1),
                line=token.line + offset,
                column=base_column + raw.find(body),
                content=match.group(2).strip(),
            )
        )
    return block
