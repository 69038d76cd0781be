"""Tests for phpsniff.tokens: token stream construction and searching."""

from phpsniff.parser import create_parser, parse_bytes
from phpsniff.tokens import Token, TokenKind, TokenStream, tokenize


def _tokenize(source: bytes) -> TokenStream:
    return tokenize(source, parse_bytes(source, parser=create_parser()))


def _kinds(stream: TokenStream) -> list[TokenKind]:
    return [t.kind for t in stream if t.kind is not TokenKind.WHITESPACE]


def test_declaration_tokens_and_positions():
    stream = _tokenize(b"<?php\ndeclare(strict_types=1);\n")
    assert _kinds(stream) == [
        TokenKind.OPEN_TAG,
        TokenKind.DECLARE,
        TokenKind.OPEN_PARENTHESIS,
        TokenKind.STRING,
        TokenKind.EQUAL,
        TokenKind.LNUMBER,
        TokenKind.CLOSE_PARENTHESIS,
        TokenKind.SEMICOLON,
    ]
    declare = stream[stream.find_next(TokenKind.DECLARE, 0)]
    assert (declare.line, declare.column, declare.length) == (2, 1, 7)
    directive = stream[stream.find_next(TokenKind.STRING, 0)]
    assert directive.content == "strict_types"
    assert directive.column == declare.end_column + 1


def test_stream_covers_whole_source():
    source = "<?php\n\n$a = ['x' => 1]; // note\n/** doc */\nfunction f() {}\n".encode()
    stream = _tokenize(source)
    assert "".join(t.content for t in stream) == source.decode()


def test_columns_count_characters_not_bytes():
    stream = _tokenize("<?php\n$a = 'é'; $b = 1;\n".encode("utf-8"))
    semicolon = stream[stream.find_next(TokenKind.SEMICOLON, 0)]
    assert semicolon.line == 2
    assert semicolon.column == 9


def test_whitespace_split_per_line():
    stream = _tokenize(b"<?php\n\n\necho 1;\n")
    blanks = [t for t in stream if t.kind is TokenKind.WHITESPACE and t.line < 4]
    assert [t.line for t in blanks] == [1, 2, 3]
    assert all(t.content == "\n" for t in blanks)


def test_doc_comment_kind():
    stream = _tokenize(b"<?php\n/** doc */\n// plain\n# hash\n/* block */\n")
    comments = [t for t in stream if t.kind in (TokenKind.COMMENT, TokenKind.DOC_COMMENT)]
    assert [t.kind for t in comments] == [
        TokenKind.DOC_COMMENT,
        TokenKind.COMMENT,
        TokenKind.COMMENT,
        TokenKind.COMMENT,
    ]


def test_variables_and_strings_are_single_tokens():
    stream = _tokenize(b'<?php\n$name = "hi $other";\n')
    variable = stream[stream.find_next(TokenKind.VARIABLE, 0)]
    assert variable.content == "$name"
    string = stream[stream.find_next(TokenKind.CONSTANT_ENCAPSED_STRING, 0)]
    assert string.content == '"hi $other"'


def test_find_next_includes_start_and_respects_end():
    stream = TokenStream(
        [
            Token(kind=TokenKind.STRING, content="a", line=1, column=1, length=1),
            Token(kind=TokenKind.WHITESPACE, content=" ", line=1, column=2, length=1),
            Token(kind=TokenKind.STRING, content="b", line=1, column=3, length=1),
        ]
    )
    assert stream.find_next(TokenKind.STRING, 0) == 0
    assert stream.find_next(TokenKind.STRING, 1) == 2
    assert stream.find_next(TokenKind.STRING, 1, end=2) is None
    assert stream.find_next(TokenKind.WHITESPACE, 0, exclude=True) == 0
    assert stream.find_next([TokenKind.SEMICOLON, TokenKind.WHITESPACE], 0) == 1


def test_find_previous():
    stream = _tokenize(b"<?php\n/** doc */\nfunction f() {}\n")
    function_ptr = stream.find_next(TokenKind.FUNCTION, 0)
    prev = stream.find_previous(TokenKind.WHITESPACE, function_ptr - 1, exclude=True)
    assert stream[prev].kind is TokenKind.DOC_COMMENT
    assert stream.find_previous(TokenKind.DECLARE, function_ptr) is None


def test_token_at_maps_byte_offsets():
    source = b"<?php\necho 1;\n"
    stream = _tokenize(source)
    idx = stream.token_at(source.index(b"echo"))
    assert stream[idx].content == "echo"
    assert stream.token_at(source.index(b"echo") + 2) == idx


def test_empty_stream():
    stream = TokenStream([])
    assert len(stream) == 0
    assert stream.find_next(TokenKind.OPEN_TAG, 0) is None
    assert stream.find_previous(TokenKind.OPEN_TAG, 0) is None
    assert stream.token_at(0) is None


def test_echo_tag_is_not_an_open_tag():
    stream = _tokenize(b"<p><?= $title ?></p>\n<?php\necho 1;\n")
    tags = [t for t in stream if t.kind in (TokenKind.OPEN_TAG, TokenKind.OPEN_TAG_WITH_ECHO)]
    assert [t.kind for t in tags] == [TokenKind.OPEN_TAG_WITH_ECHO, TokenKind.OPEN_TAG]
    assert tags[0].content.startswith("<?=")
    assert stream[stream.find_next(TokenKind.OPEN_TAG, 0)].line == 2
