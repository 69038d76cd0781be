"""Unit tests for the strict_declaration rule and its token validator."""

from pathlib import Path

import pytest

from phpsniff.context import FileContext
from phpsniff.rules.strict_declaration import (
    DeclarationFailure,
    Failed,
    Passed,
    StrictDeclarationRule,
    validate,
)
from phpsniff.tokens import Token, TokenKind, TokenStream


def _tok(kind: TokenKind, content: str, line: int, column: int) -> Token:
    return Token(kind=kind, content=content, line=line, column=column, length=len(content))


def _declaration_tokens(line: int = 2, column: int = 1, value: str = "1") -> list[Token]:
    """Tokens for a contiguous `declare(strict_types=<value>);` starting at line/column."""
    parts = [
        (TokenKind.DECLARE, "declare"),
        (TokenKind.OPEN_PARENTHESIS, "("),
        (TokenKind.STRING, "strict_types"),
        (TokenKind.EQUAL, "="),
        (TokenKind.LNUMBER, value),
        (TokenKind.CLOSE_PARENTHESIS, ")"),
        (TokenKind.SEMICOLON, ";"),
    ]
    tokens = []
    col = column
    for kind, content in parts:
        tokens.append(_tok(kind, content, line, col))
        col += len(content)
    return tokens


def _stream(*body: Token) -> TokenStream:
    return TokenStream([_tok(TokenKind.OPEN_TAG, "<?php", 1, 1), _tok(TokenKind.WHITESPACE, "\n", 1, 6), *body])


def _run_rule(source: bytes, path: Path | None = None) -> list:
    ctx = FileContext.from_source(source, path=path or Path("test.php"))
    return StrictDeclarationRule().run(ctx, None)


class TestValidateTokenStream:
    """validate() over hand-built token streams."""

    def test_contiguous_declaration_passes(self):
        assert validate(_stream(*_declaration_tokens()), 0) == Passed()

    def test_missing_declaration(self):
        stream = _stream(_tok(TokenKind.STRING, "echo", 2, 1))
        result = validate(stream, 0)
        assert isinstance(result, Failed)
        assert result.reason is DeclarationFailure.MISSING_DECLARATION
        assert result.position == 0

    def test_declaration_on_wrong_line(self):
        result = validate(_stream(*_declaration_tokens(line=3)), 0)
        assert result == Failed(reason=DeclarationFailure.WRONG_POSITION, position=0)

    def test_declaration_with_leading_space(self):
        result = validate(_stream(*_declaration_tokens(column=2)), 0)
        assert result == Failed(reason=DeclarationFailure.LEADING_SPACE, position=0)

    def test_wrong_line_wins_over_leading_space(self):
        result = validate(_stream(*_declaration_tokens(line=4, column=3)), 0)
        assert result.reason is DeclarationFailure.WRONG_POSITION

    def test_truncated_declaration_is_invalid(self):
        tokens = _declaration_tokens()[:-1]  # no semicolon anywhere
        result = validate(_stream(*tokens), 0)
        assert result == Failed(reason=DeclarationFailure.INVALID_DECLARATION, position=0)

    def test_gap_between_tokens_is_invalid(self):
        tokens = _declaration_tokens()
        shifted = tokens[:3] + [t.model_copy(update={"column": t.column + 1}) for t in tokens[3:]]
        result = validate(_stream(*shifted), 0)
        assert result.reason is DeclarationFailure.INVALID_DECLARATION

    def test_gap_after_declare_keyword_is_invalid(self):
        tokens = _declaration_tokens()
        shifted = tokens[:1] + [t.model_copy(update={"column": t.column + 1}) for t in tokens[1:]]
        result = validate(_stream(*shifted), 0)
        assert result == Failed(reason=DeclarationFailure.INVALID_DECLARATION, position=0)

    def test_token_on_next_line_is_invalid(self):
        tokens = _declaration_tokens()
        tokens[-1] = _tok(TokenKind.SEMICOLON, ";", 3, 1)
        result = validate(_stream(*tokens), 0)
        assert result.reason is DeclarationFailure.INVALID_DECLARATION

    def test_value_other_than_one_is_invalid(self):
        result = validate(_stream(*_declaration_tokens(value="0")), 0)
        assert result.reason is DeclarationFailure.INVALID_DECLARATION

    def test_validation_is_idempotent(self):
        stream = _stream(*_declaration_tokens(line=3))
        assert validate(stream, 0) == validate(stream, 0)


class TestStrictDeclarationRule:
    """The rule end to end on parsed PHP source."""

    def test_valid_declaration(self):
        source = b"<?php\ndeclare(strict_types=1);\n\nclass Foo\n{\n}\n"
        assert _run_rule(source) == []

    def test_blank_line_before_declaration(self):
        findings = _run_rule(b"<?php\n\ndeclare(strict_types=1);\n")
        assert len(findings) == 1
        assert findings[0].code == "WrongPosition"
        assert findings[0].rule_id == "strict-declaration"

    def test_declaration_on_open_tag_line(self):
        findings = _run_rule(b"<?php declare(strict_types=1);\n")
        assert [f.code for f in findings] == ["WrongPosition"]

    def test_leading_space(self):
        findings = _run_rule(b"<?php\n declare(strict_types=1);\n")
        assert [f.code for f in findings] == ["LeadingSpace"]

    @pytest.mark.parametrize(
        "declaration",
        [
            b"declare (strict_types=1);",
            b"declare(strict_types = 1);",
            b"declare( strict_types=1 );",
            b"declare(strict_types=0);",
            b"declare(ticks=1);",
        ],
    )
    def test_malformed_declaration(self, declaration):
        findings = _run_rule(b"<?php\n" + declaration + b"\n")
        assert [f.code for f in findings] == ["InvalidDeclaration"]
        assert "declare(strict_types=1);" in findings[0].message

    def test_missing_declaration(self):
        findings = _run_rule(b"<?php\n\necho 'hello';\n")
        assert [f.code for f in findings] == ["MissingDeclaration"]
        assert findings[0].message == "Strict type declaration not found in file"

    def test_finding_located_at_open_tag(self):
        findings = _run_rule(b"<?php\n\necho 1;\n", path=Path("src/index.php"))
        loc = findings[0].location
        assert loc.path == Path("src/index.php")
        assert (loc.line, loc.column) == (1, 1)
        assert loc.snippet == "<?php"
        assert findings[0].severity == "error"

    def test_inline_html_before_open_tag(self):
        source = b"<p>header</p>\n<?php\ndeclare(strict_types=1);\n"
        assert _run_rule(source) == []

    def test_pure_html_file_is_skipped(self):
        assert _run_rule(b"<html><body>static</body></html>\n") == []

    def test_echo_tag_template_is_skipped(self):
        assert _run_rule(b"<p><?= $title ?></p>\n") == []

    def test_echo_tag_before_open_tag(self):
        source = b"<p><?= $title ?></p>\n<?php\ndeclare(strict_types=1);\n"
        assert _run_rule(source) == []

    def test_only_one_finding_per_file(self):
        source = b"<?php\n\ndeclare (strict_types=0);\n?>\n<?php\necho 1;\n"
        assert len(_run_rule(source)) == 1
