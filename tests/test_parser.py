import pytest
from pydantic import ValidationError

from lexer import tokenize
from parser import parse
from models import Token, VarDecl, Show, Int, Str, ParseError


def tok(type, lexeme="", value=None):
    return Token(type=type, lexeme=lexeme, value=value)


def parse_src(source, strict=False):
    tokens, diags = tokenize(source)
    assert diags == []
    return parse(tokens, strict=strict)


def test_string_declaration():
    tokens = [tok("KW", "c"), tok("IDENT", "name"), tok("EQUAL", "="), tok("STRING", "BP"), tok("EOF")]
    program, diags = parse(tokens)
    assert diags == []
    assert program.body == [VarDecl(id="name", init=Str(value="BP"))]


def test_number_declaration_and_show():
    program, diags = parse_src('m a = 1; show "hi";')
    assert diags == []
    assert program.body == [VarDecl(id="a", init=Int(value=1)), Show(text="hi")]


def test_semicolon_is_optional():
    program, diags = parse_src('m a = 1 c b = "x" show "y"')
    assert diags == []
    assert [type(n) for n in program.body] == [VarDecl, VarDecl, Show]


def test_m_and_c_are_synonyms():
    left, _ = parse_src("m a = 1")
    right, _ = parse_src("c a = 1")
    assert left == right


def test_missing_identifier_lenient():
    program, diags = parse([tok("KW", "m"), tok("EOF")])
    assert program.body == []
    assert [(d.code, d.index) for d in diags] == [("E_PARSE_MISSING_IDENT", 1)]


def test_missing_identifier_strict():
    with pytest.raises(ParseError) as exc:
        parse([tok("KW", "m"), tok("EOF")], strict=True)
    assert exc.value.diagnostic.code == "E_PARSE_MISSING_IDENT"
    assert exc.value.diagnostic.index == 1


def test_missing_equals_recovers_one_token_at_a_time():
    program, diags = parse_src('m x 5; show "ok"')
    assert [(d.code, d.index) for d in diags] == [
        ("E_PARSE_MISSING_EQUAL", 2),
        ("E_PARSE_UNEXPECTED", 1),
        ("E_PARSE_UNEXPECTED", 2),
        ("E_PARSE_UNEXPECTED", 3),
    ]
    assert program.body == [Show(text="ok")]


def test_missing_literal():
    _, diags = parse_src("m x = ;")
    assert diags[0].code == "E_PARSE_MISSING_LITERAL"
    assert diags[0].index == 3


def test_show_needs_string():
    _, diags = parse_src("show 5")
    assert diags[0].code == "E_PARSE_MISSING_SHOW_STR"
    assert diags[0].index == 1


def test_unknown_keyword():
    program, diags = parse([tok("KW", "let"), tok("EOF")])
    assert program.body == []
    assert [(d.code, d.index) for d in diags] == [("E_PARSE_UNKNOWN_KW", 0)]


def test_unexpected_token_at_statement_start():
    program, diags = parse_src('x show "a"')
    assert [(d.code, d.index) for d in diags] == [("E_PARSE_UNEXPECTED", 0)]
    assert program.body == [Show(text="a")]


def test_truncated_stream_is_end_of_input():
    program, diags = parse([tok("KW", "m"), tok("IDENT", "x")])
    assert program.body == []
    assert [(d.code, d.index) for d in diags] == [("E_PARSE_EOF", 2)]


def test_empty_stream_is_end_of_input():
    _, diags = parse([])
    assert [(d.code, d.index) for d in diags] == [("E_PARSE_EOF", 0)]


def test_truncated_stream_strict():
    with pytest.raises(ParseError) as exc:
        parse([tok("KW", "show")], strict=True)
    assert exc.value.diagnostic.code == "E_PARSE_EOF"


def test_stops_at_eof():
    program, diags = parse([tok("EOF"), tok("KW", "m")])
    assert program.body == []
    assert diags == []


def test_strict_stops_at_first_problem():
    tokens, _ = tokenize("m ; show 5")
    with pytest.raises(ParseError) as exc:
        parse(tokens, strict=True)
    assert exc.value.diagnostic.code == "E_PARSE_MISSING_IDENT"


@pytest.mark.parametrize("fields", [
    {"type": "INT", "lexeme": "5"},
    {"type": "INT", "lexeme": "5", "value": 2**31},
    {"type": "IDENT", "lexeme": "x; int y"},
    {"type": "STRING", "lexeme": "a", "value": 1},
])
def test_malformed_tokens_are_rejected(fields):
    with pytest.raises(ValidationError):
        Token(**fields)
