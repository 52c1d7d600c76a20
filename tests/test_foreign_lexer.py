import pytest
from hypothesis import given, strategies as st

from zinc.errors import ZincSyntaxError
from zinc.foreign.tokens import Token, lex, scan_forms, tokens_to_text


def kinds(source):
    return [t.kind for t in lex(source)]


@pytest.mark.parametrize(
    "source,expected",
    [
        ("X = foo(1, 2.5).", ["var", "=", "atom", "(", "integer", ",", "float", ")", "dot"]),
        ("?FOO", ["?", "var"]),
        ("??Arg", ["??", "var"]),
        ("A =:= B", ["var", "=:=", "var"]),
        ("A div B", ["var", "div", "var"]),
        ("X#r.f", ["var", "#", "atom", ".", "atom"]),
        ("-record(r, {a :: integer()}).", ["-", "atom", "(", "atom", ",", "{", "atom", "::", "atom", "(", ")", "}", ")", "dot"]),
        ("[H | T]", ["[", "var", "|", "var", "]"]),
        ("fun m:f/2", ["fun", "atom", ":", "atom", "/", "integer"]),
        ("_Ignored", ["var"]),
    ]
)
def test_token_kinds(source, expected):
    assert kinds(source) == expected


@pytest.mark.parametrize(
    "source,value",
    [
        ("42", 42),
        ("16#FF", 255),
        ("2#1010", 10),
        ("1.5e3", 1500.0),
        ("$a", 97),
        ("$\\n", 10),
        ("'hello world'", "hello world"),
        ('"a\\tb"', "a\tb"),
        ('"\\x{41}"', "A"),
    ]
)
def test_token_values(source, value):
    [tok] = lex(source)
    assert tok.value == value


def test_quoted_atom_is_an_atom():
    [tok] = lex("'Quoted'")
    assert tok == Token("atom", "Quoted", 1)


def test_lines_are_counted():
    toks = lex("a % comment\n\nb")
    assert [(t.value, t.line) for t in toks] == [("a", 1), ("b", 3)]


def test_start_line():
    assert lex("x", 7)[0].line == 7


def test_dot_before_end_of_input():
    assert kinds("a.") == ["atom", "dot"]
    assert kinds("a.%c") == ["atom", "dot"]


def test_illegal_character():
    with pytest.raises(ZincSyntaxError) as exc:
        lex("a ~ b")
    assert exc.value.line == 1


def test_bad_based_integer():
    with pytest.raises(ZincSyntaxError):
        lex("2#129")


def test_scan_forms():
    forms = scan_forms("-define(A, 1).\n-define(B, 2).\ntrailing")
    assert len(forms) == 3
    assert [t.kind for t in forms[0]] == ["-", "atom", "(", "var", ",", "integer", ")"]
    assert forms[2] == [Token("atom", "trailing", 3)]


def test_scan_forms_resumes_after_illegal_character():
    forms = scan_forms("a.\nb & c.\nd(1.5).\n~")
    assert forms[0] == [Token("atom", "a", 1)]
    assert isinstance(forms[1], ZincSyntaxError)
    assert (forms[1].reason, forms[1].line) == ("illegal character '&'", 2)
    assert [t.kind for t in forms[2]] == ["atom", "(", "float", ")"]
    assert forms[2][0].line == 3
    assert isinstance(forms[3], ZincSyntaxError)
    assert forms[3].line == 4
    assert len(forms) == 4


def test_scan_forms_error_without_full_stop():
    [form] = scan_forms("x ~ y")
    assert isinstance(form, ZincSyntaxError)


@pytest.mark.parametrize(
    "source,text",
    [
        ("foo(X, 1)", "foo(X,1)"),
        ("a + b", "a+b"),
        ("A div B", "A div B"),
        ("'Big'", "'Big'"),
        ('"s"', '"s"'),
    ]
)
def test_tokens_to_text(source, text):
    assert tokens_to_text(lex(source)) == text


@given(st.text(alphabet="abcXYZ019 ,.()[]{}+-*/=<>", max_size=40))
def test_lexer_no_crash(source):
    # Either lexes or raises a syntax error, never anything else
    try:
        toks = lex(source)
    except ZincSyntaxError:
        return
    assert all(isinstance(t, Token) for t in toks)
