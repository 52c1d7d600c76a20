from pathlib import Path

import pytest

from zinc.errors import (
    ZincBadArgument, ZincMacroTranslationError, ZincReadError, ZincSessionError, format_error,
)
from zinc.foreign.preprocessor import Preprocessor
from zinc.include import Includer, include_file, include_lib, include_name
from zinc.types.state import ExpanderState
from zinc.types.symbol import (
    Symbol, DEFMACRO, DEFRECORD, LIST, PROGN, QUASIQUOTE, UNQUOTE, WILDCARD,
)


def S(name):
    return Symbol(name)


POINT_HRL = "-record(point, {x, y = 0}).\n-define(SQ(N), N*N).\n"

POINT_FORMS = [
    PROGN,
    [DEFRECORD, S("point"), S("x"), [S("y"), 0]],
    [DEFMACRO, S("SQ"), [[LIST, S("N")], [QUASIQUOTE, [S("*"), [UNQUOTE, S("N")], [UNQUOTE, S("N")]]]]],
]


@pytest.fixture
def includer(lib_dir):
    return Includer(lib_dir=lib_dir, preprocessor=Preprocessor(include_path=[], lib_dir=lib_dir))


# ----------------------
# Arguments
# ----------------------
def test_include_name():
    assert include_name(["a.hrl"]) == "a.hrl"


@pytest.mark.parametrize("body", [[], ["a.hrl", "b.hrl"], [S("a")], [42], "a.hrl"])
def test_include_name_bad_argument(body):
    with pytest.raises(ZincBadArgument):
        include_name(body)


def test_bad_argument_message(includer):
    with pytest.raises(ZincBadArgument) as exc:
        includer.file([], None, ExpanderState())
    assert format_error(exc.value).startswith("bad argument")


# ----------------------
# include-file
# ----------------------
def test_include_header(includer, write):
    path = write("point.hrl", POINT_HRL)
    result = includer.file([str(path)], None, ExpanderState())
    assert result.form == POINT_FORMS
    assert result.state.included == (path,)


def test_include_native_file(includer, write):
    path = write("defs.lisp", "(define x 1)\n(defun f (y) y)\n")
    form, state = includer.file([str(path)], None, ExpanderState())
    assert form == [
        PROGN,
        [S("define"), S("x"), 1],
        [S("defun"), S("f"), [S("y")], S("y")],
    ]
    assert state.included == (path,)


def test_include_empty_header(includer, write):
    path = write("empty.hrl", "% nothing here\n")
    assert includer.file([str(path)], None, ExpanderState()).form == [PROGN]


def test_state_is_threaded(includer, write):
    a = write("a.hrl", "-record(a, {}).")
    b = write("b.lisp", "(b)")
    state = includer.file([str(a)], None, ExpanderState()).state
    state = includer.file([str(b)], None, state).state
    assert state.included == (a, b)


def test_input_state_is_not_modified(includer, write):
    path = write("a.hrl", "-record(a, {}).")
    state = ExpanderState()
    includer.file([str(path)], None, state)
    assert state.included == ()


@pytest.mark.parametrize("name", ["missing.hrl", "missing.lisp"])
def test_include_missing_file(includer, tmp_path, name):
    with pytest.raises(ZincReadError):
        includer.file([str(tmp_path / name)], None, ExpanderState())


def test_include_bad_native_file(includer, write):
    path = write("bad.lisp", "(unclosed")
    with pytest.raises(ZincReadError):
        includer.file([str(path)], None, ExpanderState())


def test_include_latin1_header(includer, tmp_path):
    path = tmp_path / "caf.hrl"
    path.write_bytes('-record(caf, {name = "café"}).\n'.encode("latin-1"))
    form = includer.file([str(path)], None, ExpanderState()).form
    assert form == [PROGN, [DEFRECORD, S("caf"), [S("name"), "café"]]]


@pytest.mark.parametrize("name,data", [
    ("bad.hrl", b"%% coding: utf-8\n-record(r, {a = \"\xe9\"}).\n"),
    ("bad.lisp", b"(a \"\xe9\")"),
])
def test_include_undecodable_file(includer, tmp_path, name, data):
    path = tmp_path / name
    path.write_bytes(data)
    with pytest.raises(ZincReadError) as exc:
        includer.file([str(path)], None, ExpanderState())
    assert exc.value.path == path


def test_lex_error_keeps_other_definitions(includer, write):
    path = write("mixed.hrl", "-record(a,{x}). -define(BAD, x & y). -record(b,{y}). -define(OK,1).")
    form = includer.file([str(path)], None, ExpanderState()).form
    assert form == [
        PROGN,
        [DEFRECORD, S("a"), S("x")],
        [DEFRECORD, S("b"), S("y")],
        [DEFMACRO, S("OK"), [WILDCARD, [QUASIQUOTE, 1]]],
    ]


def test_header_errors_are_dropped(write):
    diagnostics = []
    includer = Includer(preprocessor=Preprocessor(include_path=[]), diagnostics=diagnostics)
    path = write("mixed.hrl", "-record(bad, {1}).\n-record(good, {a}).\n-define(BAD, case X of end).\n")
    form = includer.file([str(path)], None, ExpanderState()).form
    assert form == [PROGN, [DEFRECORD, S("good"), S("a")]]
    messages = [d.message for d in diagnostics]
    assert "bad record field" in messages
    assert any(m.startswith("unable to translate macro BAD") for m in messages)


def test_strict_includer(write):
    includer = Includer(preprocessor=Preprocessor(include_path=[]), strict=True)
    path = write("bad.hrl", "-define(BAD, case X of end).\n")
    with pytest.raises(ZincMacroTranslationError) as exc:
        includer.file([str(path)], None, ExpanderState())
    assert format_error(exc.value) == "unable to translate macro BAD"


def test_object_macro(includer, write):
    path = write("answer.hrl", "-define(ANSWER, 42).\n")
    form = includer.file([str(path)], None, ExpanderState()).form
    assert form == [PROGN, [DEFMACRO, S("ANSWER"), [WILDCARD, [QUASIQUOTE, 42]]]]


def test_header_suffixes_from_env(includer, write, monkeypatch):
    monkeypatch.setenv("ZINC_HEADER_SUFFIXES", ".hrl,.erlh")
    path = write("point.erlh", POINT_HRL)
    assert includer.file([str(path)], None, ExpanderState()).form == POINT_FORMS


def test_include_file_function(write):
    path = write("point.hrl", POINT_HRL)
    assert include_file([str(path)], None, ExpanderState()).form == POINT_FORMS


# ----------------------
# include-lib
# ----------------------
def test_include_lib_direct_path(includer, write, lib_dir):
    path = write("point.hrl", POINT_HRL)
    assert includer.lib([str(path)], None, ExpanderState()).form == POINT_FORMS
    assert lib_dir.calls == []


def test_include_lib_falls_back_to_library(includer, lib_root, lib_dir, tmp_path, monkeypatch):
    (tmp_path / "cwd").mkdir()
    monkeypatch.chdir(tmp_path / "cwd")
    result = includer.lib(["mylib/include/defs.hrl"], None, ExpanderState())
    assert result.form[1] == [DEFRECORD, S("librec"), [S("a"), 1]]
    assert result.form[2] == [DEFMACRO, S("LIBMAC"), [WILDCARD, [QUASIQUOTE, 7]]]
    assert result.state.included == (lib_root / "include" / "defs.hrl",)
    assert lib_dir.calls == ["mylib"]


def test_include_lib_unknown_library(includer, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ZincBadArgument) as exc:
        includer.lib(["otherlib/include/defs.hrl"], None, ExpanderState())
    assert "otherlib" in str(exc.value)


def test_include_lib_missing_file_in_library(includer, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ZincReadError):
        includer.lib(["mylib/include/nope.hrl"], None, ExpanderState())


def test_lib_file_name(includer, lib_root):
    assert includer.lib_file_name("mylib/include/x.hrl") == lib_root / "include" / "x.hrl"
    with pytest.raises(ZincBadArgument):
        includer.lib_file_name("")


def test_include_lib_function_uses_lib_path(lib_root, tmp_path, monkeypatch):
    monkeypatch.setenv("ZINC_LIB_PATH", str(lib_root.parent))
    monkeypatch.chdir(tmp_path)
    result = include_lib(["mylib/include/defs.hrl"], None, ExpanderState())
    assert result.form[1] == [DEFRECORD, S("librec"), [S("a"), 1]]


# ----------------------
# Preprocessor protocol
# ----------------------
class FakeSession:
    def __init__(self, events, fail):
        self.events = events
        self.fail = fail

    def parse_file(self):
        self.events.append("parse_file")
        return FakeParsed(self)

    def close(self):
        self.events.append("close")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeParsed:
    def __init__(self, session):
        self.session = session
        self.forms = []

    def macro_defs(self):
        self.session.events.append("macro_defs")
        if self.session.fail:
            raise ZincSessionError("macro table unavailable")
        return {}


class FakePreprocessor:
    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    def open(self, path):
        self.events.append("open")
        return FakeSession(self.events, self.fail)


def test_session_protocol_order():
    pp = FakePreprocessor()
    forms, _ = Includer(preprocessor=pp).read_hrl_file(Path("x.hrl"), ExpanderState())
    assert forms == []
    assert pp.events == ["open", "parse_file", "macro_defs", "close"]


def test_session_closed_on_failure():
    pp = FakePreprocessor(fail=True)
    with pytest.raises(ZincSessionError):
        Includer(preprocessor=pp).read_hrl_file(Path("x.hrl"), ExpanderState())
    assert pp.events == ["open", "parse_file", "macro_defs", "close"]
