"""Tests for doc comment parsing."""

from phpsniff.docblock import parse_docblock
from phpsniff.tokens import Token, TokenKind


def _doc(content: str, line: int = 1, column: int = 1) -> Token:
    return Token(kind=TokenKind.DOC_COMMENT, content=content, line=line, column=column, length=len(content))


MULTILINE = "\n".join(
    [
        "/**",
        "     * Summary.",
        "     *",
        "     * @param int $a",
        "     * @see",
        "     * @return string The name",
        "     */",
    ]
)


def test_tags_and_lines():
    block = parse_docblock(_doc(MULTILINE, line=3, column=5))
    assert [t.name for t in block.tags] == ["@param", "@see", "@return"]
    assert [t.line for t in block.tags] == [6, 7, 8]
    assert block.start_line == 3
    assert block.end_line == 9


def test_tag_content_and_columns():
    block = parse_docblock(_doc(MULTILINE, line=3, column=5))
    see, ret = block.tags_named("@see")[0], block.tags_named("@return")[0]
    assert see.content == ""
    assert see.column == 8
    assert ret.content == "string The name"


def test_closer_column():
    block = parse_docblock(_doc(MULTILINE, line=3, column=5))
    assert block.closer_column == 6


def test_single_line_doc_comment():
    block = parse_docblock(_doc("/** @return int */", line=4, column=5))
    assert len(block.tags) == 1
    tag = block.tags[0]
    assert (tag.name, tag.content, tag.line, tag.column) == ("@return", "int", 4, 9)
    assert block.end_line == 4
    assert block.closer_column == 21


def test_inheritdoc_detection():
    assert parse_docblock(_doc("/**\n * {@inheritdoc}\n */")).has_inheritdoc
    assert parse_docblock(_doc("/**\n * @inheritDoc\n */")).has_inheritdoc
    assert not parse_docblock(_doc("/**\n * Inherits nothing.\n */")).has_inheritdoc


def test_inline_inheritdoc_is_not_a_block_tag():
    block = parse_docblock(_doc("/**\n * {@inheritdoc}\n */"))
    assert block.tags == []


def test_duplicate_tags_are_kept_in_order():
    block = parse_docblock(_doc("/**\n * @return int\n * @return string\n */"))
    assert [t.content for t in block.tags_named("@return")] == ["int", "string"]
