import pytest

from zinc.diagnostics import INFO, WARNING
from zinc.errors import ZincMacroTranslationError, format_error
from zinc.foreign.forms import MacroDef, NONE, PREDEFINED
from zinc.foreign.tokens import Token, lex
from zinc.translate.macros import (
    capture_args, order_defs, trans_macro, trans_macro_body, trans_macros, trans_qm,
)
from zinc.types.symbol import Symbol, DEFMACRO, LIST, QUASIQUOTE, QUOTE, UNQUOTE, WILDCARD


def mdef(params, body, line=1):
    return MacroDef(tuple(params), tuple(lex(body, line)), line)


def S(name):
    return Symbol(name)


# ----------------------
# Token passes
# ----------------------
def test_trans_qm_object_macro():
    assert trans_qm(lex("?FOO")) == [Token("atom", "FOO", 1), Token("(", "(", 1), Token(")", ")", 1)]


def test_trans_qm_call_keeps_arguments():
    assert trans_qm(lex("?foo(X)")) == [
        Token("atom", "foo", 1), Token("(", "(", 1), Token("var", "X", 1), Token(")", ")", 1),
    ]


def test_trans_qm_any_spelling_becomes_atom():
    assert trans_qm(lex("?Sune(1)"))[0] == Token("atom", "Sune", 1)
    assert trans_qm(lex("?sune"))[0] == Token("atom", "sune", 1)


def test_trans_qm_leaves_other_tokens():
    toks = lex("A + b")
    assert trans_qm(toks) == toks
    assert trans_qm(lex("?")) == lex("?")


def test_capture_args_wraps_parameters_only():
    toks = capture_args(["X"], lex("X + Y"))
    assert [(t.kind, t.value) for t in toks] == [
        ("atom", "unquote"), ("(", "("), ("var", "X"), (")", ")"), ("+", "+"), ("var", "Y"),
    ]


def test_capture_args_ignores_atoms_with_parameter_names():
    toks = lex("x")
    assert capture_args(["x"], toks) == toks


def test_token_passes_do_not_mutate_input():
    toks = lex("?A(X)")
    before = list(toks)
    trans_qm(toks)
    capture_args(["X"], toks)
    assert toks == before


# ----------------------
# Bodies
# ----------------------
def test_body_parameter_substitution():
    template = trans_macro_body(["N"], lex("N*N"))
    assert template == [QUASIQUOTE, [S("*"), [UNQUOTE, S("N")], [UNQUOTE, S("N")]]]


def test_body_non_parameters_stay_literal():
    template = trans_macro_body(["X", "Y"], lex("{X, x, Z}"))
    assert template == [QUASIQUOTE, [S("tuple"), [UNQUOTE, S("X")], [QUOTE, S("x")], S("Z")]]


def test_body_macro_use_becomes_call():
    template = trans_macro_body([], lex("?OTHER + 1"))
    assert template == [QUASIQUOTE, [S("+"), [S("OTHER")], 1]]


def test_body_not_single_expression():
    assert trans_macro_body(["X"], lex("X, X")) is None
    assert trans_macro_body([], []) is None


# ----------------------
# Whole macros
# ----------------------
def test_square_macro():
    form = trans_macro("SQ", {1: mdef(["N"], "N*N")})
    assert form == [
        DEFMACRO, S("SQ"),
        [[LIST, S("N")], [QUASIQUOTE, [S("*"), [UNQUOTE, S("N")], [UNQUOTE, S("N")]]]],
    ]


def test_object_macro_is_single_wildcard_clause():
    form = trans_macro("ANSWER", {NONE: mdef([], "42")})
    assert form == [DEFMACRO, S("ANSWER"), [WILDCARD, [QUASIQUOTE, 42]]]


def test_object_clause_is_last():
    form = trans_macro("FOO", {NONE: mdef([], "42"), 1: mdef(["X"], "X")})
    clauses = form[2:]
    assert clauses[0][0] == [LIST, S("X")]
    assert clauses[-1][0] == WILDCARD


def test_zero_arity_and_object_macro():
    form = trans_macro("foo", {NONE: mdef([], "42"), 0: mdef([], "17")})
    assert form[2:] == [[[LIST], [QUASIQUOTE, 17]], [WILDCARD, [QUASIQUOTE, 42]]]


def test_order_defs_keeps_table_order():
    defs = {2: mdef(["A", "B"], "A"), NONE: mdef([], "1"), 0: mdef([], "2")}
    assert [arity for arity, _ in order_defs(defs)] == [2, 0, NONE]


def test_undefined_and_predefined_are_ignored():
    assert trans_macro("GONE", None) is None
    assert trans_macro("LINE", {PREDEFINED: MacroDef((), ())}) is None


def test_multiple_expressions_drop_only_that_clause():
    diagnostics = []
    form = trans_macro("M", {1: mdef(["X"], "X, X"), 2: mdef(["X", "Y"], "X + Y")}, diagnostics)
    assert form[2:] == [[[LIST, S("X"), S("Y")], [QUASIQUOTE, [S("+"), [UNQUOTE, S("X")], [UNQUOTE, S("Y")]]]]]
    assert [d.severity for d in diagnostics] == [INFO]
    assert diagnostics[0].name == "M"


def test_macro_without_clauses_is_omitted():
    assert trans_macro("M", {1: mdef(["X"], "X, X")}) is None
    assert trans_macro("E", {NONE: mdef([], "")}) is None


def test_untranslatable_body_is_reported():
    diagnostics = []
    assert trans_macro("BAD", {NONE: mdef([], "case X of end", 3)}, diagnostics) is None
    [diag] = diagnostics
    assert diag.severity == WARNING
    assert diag.line == 3
    assert diag.message.startswith("unable to translate macro BAD")


def test_trans_macros_table_order():
    table = {
        "LINE": {PREDEFINED: MacroDef((), ())},
        "A": {NONE: mdef([], "1")},
        "B": None,
        "C": {NONE: mdef([], "2")},
    }
    assert [form[1] for form in trans_macros(table)] == [S("A"), S("C")]


def test_strict_raises():
    with pytest.raises(ZincMacroTranslationError) as exc:
        trans_macro("BAD", {NONE: mdef([], "case X of end")}, strict=True)
    assert exc.value.name == "BAD"
    assert format_error(exc.value) == "unable to translate macro BAD"


def test_strict_raises_on_multiple_expressions():
    with pytest.raises(ZincMacroTranslationError):
        trans_macros({"M": {1: mdef(["X"], "X, X")}}, strict=True)
