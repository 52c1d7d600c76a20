"""Default header preprocessor.

Reads a foreign header, tracks its macro definitions and returns the fully
macro-expanded structural forms. The service is driven through a session
that moves through three states:

    opened --parse_file()--> parsed --close()--> closed

`HeaderSession.parse_file()` returns a `ParsedHeader`; the macro table is
only reachable from that object, so it cannot be requested before the forms
have been parsed. Sessions are context managers and always close on exit:

    with Preprocessor().open("point.hrl") as session:
        parsed = session.parse_file()
        forms, macros = parsed.forms, parsed.macro_defs()
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Optional

from zinc.config import find_lib_dir, get_include_dirs
from zinc.errors import ZincReadError, ZincSessionError, ZincSyntaxError
from zinc.foreign.forms import (
    AttributeForm, ErrorForm, Form, FunctionDecl, MacroDef, MacroTable,
    NONE, PREDEFINED, RecordDecl, RecordField, TypeDecl,
)
from zinc.foreign.parser import parse_expr
from zinc.foreign.tokens import Token, lex, scan_forms, tokens_to_text

logger = logging.getLogger(__name__)

LibResolver = Callable[[str], Optional[Path]]

MAX_EXPANSION_DEPTH = 100

# `%% coding: latin-1` or `%% -*- coding: utf-8 -*-` on one of the first two lines
CODING_RE = re.compile(rb"%.*?coding\s*[:=]\s*([-\w.]+)")

TYPE_ATTRIBUTES = frozenset({"type", "opaque", "spec", "callback"})
CONDITIONAL_ATTRIBUTES = frozenset({"ifdef", "ifndef", "else", "endif", "if", "elif"})

OPEN_BRACKETS = {"(": ")", "[": "]", "{": "}", "<<": ">>"}
CLOSE_BRACKETS = frozenset(OPEN_BRACKETS.values())


def read_header(path: Path) -> str:
    """Read and decode a header file.

    A `coding:` comment on one of the first two lines names the encoding;
    without one the file is read as UTF-8, falling back to Latin-1.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ZincReadError(f"{path}: {e.strerror or e}", path) from e
    m = CODING_RE.search(b"\n".join(data.split(b"\n", 2)[:2]))
    try:
        if m:
            return data.decode(m.group(1).decode("ascii"))
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("%s is not UTF-8, reading it as Latin-1", path)
            return data.decode("latin-1")
    except (LookupError, UnicodeDecodeError) as e:
        raise ZincReadError(f"{path}: {e}", path) from e


def split_top_level(tokens: list[Token], sep: str = ",") -> list[list[Token]]:
    """Split tokens on `sep` outside of any bracket pair."""
    parts: list[list[Token]] = [[]]
    depth = 0
    for tok in tokens:
        if tok.kind in OPEN_BRACKETS:
            depth += 1
        elif tok.kind in CLOSE_BRACKETS:
            depth -= 1
        if tok.kind == sep and depth == 0:
            parts.append([])
        else:
            parts[-1].append(tok)
    return parts


def _matching(tokens: list[Token], start: int) -> int:
    """Index of the bracket closing the one opened at tokens[start]."""
    depth = 0
    for i in range(start, len(tokens)):
        if tokens[i].kind in OPEN_BRACKETS:
            depth += 1
        elif tokens[i].kind in CLOSE_BRACKETS:
            depth -= 1
            if depth == 0:
                return i
    raise ZincSyntaxError("unbalanced brackets", tokens[start].line)


class Preprocessor:
    """Opens header sessions.

    include_path: extra directories searched by -include.
    lib_dir: resolves the library name of an -include_lib path to its root.
    predefined: extra predefined macros, name -> replacement source text.
    """

    def __init__(
        self,
        include_path: Optional[Iterable[str | Path]] = None,
        lib_dir: LibResolver = find_lib_dir,
        predefined: Optional[dict[str, str]] = None,
    ):
        if include_path is None:
            include_path = get_include_dirs()
        self.include_path = [Path(p) for p in include_path]
        self.lib_dir = lib_dir
        self.predefined = dict(predefined or {})

    def open(self, path: str | Path) -> HeaderSession:
        path = Path(path)
        return HeaderSession(self, path, read_header(path))

    def open_text(self, text: str, path: str | Path = "nofile") -> HeaderSession:
        return HeaderSession(self, Path(path), text)


class HeaderSession:
    OPENED = "opened"
    PARSED = "parsed"
    CLOSED = "closed"

    def __init__(self, preprocessor: Preprocessor, path: Path, text: str):
        self.preprocessor = preprocessor
        self.path = path
        self.state = self.OPENED
        self._text = text
        self._reader: Optional[_HeaderReader] = None

    def parse_file(self) -> ParsedHeader:
        if self.state != self.OPENED:
            raise ZincSessionError(f"parse_file called on a {self.state} session")
        self._reader = _HeaderReader(self.preprocessor, self.path)
        forms = self._reader.read(self._text, self.path)
        self.state = self.PARSED
        return ParsedHeader(self, forms)

    def _macro_table(self) -> MacroTable:
        if self.state != self.PARSED:
            raise ZincSessionError(f"macro_defs requested from a {self.state} session")
        return dict(self._reader.table)

    def close(self) -> None:
        self.state = self.CLOSED
        self._text = ""
        self._reader = None

    def __enter__(self) -> HeaderSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ParsedHeader:
    """A session whose forms have been parsed."""

    def __init__(self, session: HeaderSession, forms: list[Form]):
        self.session = session
        self.forms = forms

    def macro_defs(self) -> MacroTable:
        return self.session._macro_table()


class _HeaderReader:
    """Turns header text into forms, accumulating the macro table."""

    def __init__(self, preprocessor: Preprocessor, path: Path):
        self.pp = preprocessor
        self.files: list[Path] = []
        self.table: MacroTable = {
            "FILE": {PREDEFINED: MacroDef((), ())},
            "LINE": {PREDEFINED: MacroDef((), ())},
            "MACHINE": {PREDEFINED: MacroDef((), (Token("atom", "BEAM", 0),))},
        }
        for name, source in preprocessor.predefined.items():
            self.table[name] = {PREDEFINED: MacroDef((), tuple(lex(source, 0)))}

    @property
    def current_file(self) -> Path:
        return self.files[-1]

    def read(self, text: str, path: Path) -> list[Form]:
        self.files.append(path)
        try:
            forms: list[Form] = []
            for toks in scan_forms(text):
                if isinstance(toks, ZincSyntaxError):
                    forms.append(ErrorForm(toks.reason, toks.line or 0))
                    continue
                if not toks:
                    continue
                try:
                    forms.extend(self.form(toks))
                except ZincSyntaxError as e:
                    forms.append(ErrorForm(e.reason, e.line or toks[0].line))
            return forms
        finally:
            self.files.pop()

    # ----------------------
    # Forms
    # ----------------------
    def form(self, toks: list[Token]) -> list[Form]:
        line = toks[0].line
        if toks[0].kind == "-" and len(toks) > 1 and toks[1].kind in ("atom", "if"):
            return self.attribute(str(toks[1].value), toks[2:], line)
        if toks[0].kind == "atom" and len(toks) > 1 and toks[1].kind == "(":
            close = _matching(toks, 1)
            args = toks[2:close]
            arity = len(split_top_level(args)) if args else 0
            return [FunctionDecl(toks[0].value, arity, line)]
        raise ZincSyntaxError(f"syntax error before {toks[0].value!r}", line)

    def attribute(self, name: str, toks: list[Token], line: int) -> list[Form]:
        if name == "define":
            self.define(toks, line)
            return []
        if name == "undef":
            self.undef(toks, line)
            return []
        if name == "record":
            return [self.record(self.expand(toks), line)]
        if name in TYPE_ATTRIBUTES:
            return [TypeDecl(name, self._type_name(toks), line)]
        if name in ("include", "include_lib"):
            return self.include(name, toks, line)
        if name in CONDITIONAL_ATTRIBUTES:
            logger.warning("%s:%d: conditional compilation (-%s) is not supported, ignored",
                           self.current_file, line, name)
        return [AttributeForm(name, line)]

    @staticmethod
    def _type_name(toks: list[Token]) -> str:
        for tok in toks:
            if tok.kind == "atom":
                return tok.value
        return ""

    @staticmethod
    def _parenthesized(toks: list[Token], line: int) -> list[Token]:
        if not toks or toks[0].kind != "(" or toks[-1].kind != ")" or _matching(toks, 0) != len(toks) - 1:
            raise ZincSyntaxError("badly formed attribute", line)
        return toks[1:-1]

    def define(self, toks: list[Token], line: int) -> None:
        inner = self._parenthesized(toks, line)
        if not inner or inner[0].kind not in ("atom", "var"):
            raise ZincSyntaxError("bad macro name in -define", line)
        name = inner[0].value
        rest = inner[1:]
        if rest and rest[0].kind == "(":
            close = _matching(rest, 0)
            params = []
            for part in split_top_level(rest[1:close]) if close > 1 else []:
                if len(part) != 1 or part[0].kind != "var":
                    raise ZincSyntaxError(f"bad argument list in -define({name})", line)
                params.append(part[0].value)
            arity = len(params)
            rest = rest[close + 1:]
        else:
            params = []
            arity = NONE
        if not rest or rest[0].kind != ",":
            raise ZincSyntaxError(f"missing body in -define({name})", line)
        defs = self.table.get(name)
        if defs is None:
            defs = self.table[name] = {}
        if PREDEFINED in defs:
            raise ZincSyntaxError(f"redefining predefined macro '{name}'", line)
        if arity in defs:
            raise ZincSyntaxError(f"redefining macro '{name}'", line)
        defs[arity] = MacroDef(tuple(params), tuple(rest[1:]), line)

    def undef(self, toks: list[Token], line: int) -> None:
        inner = self._parenthesized(toks, line)
        if len(inner) != 1 or inner[0].kind not in ("atom", "var"):
            raise ZincSyntaxError("bad macro name in -undef", line)
        self.table[inner[0].value] = None

    def record(self, toks: list[Token], line: int) -> RecordDecl:
        inner = self._parenthesized(toks, line)
        if len(inner) < 4 or inner[0].kind != "atom" or inner[1].kind != "," or inner[2].kind != "{":
            raise ZincSyntaxError("badly formed record declaration", line)
        close = _matching(inner, 2)
        if close != len(inner) - 1:
            raise ZincSyntaxError("badly formed record declaration", line)
        fields = []
        body = inner[3:close]
        for part in split_top_level(body) if body else []:
            fields.append(self.record_field(part, line))
        return RecordDecl(inner[0].value, tuple(fields), line)

    def record_field(self, toks: list[Token], line: int) -> RecordField:
        if not toks or toks[0].kind != "atom":
            raise ZincSyntaxError("bad record field", toks[0].line if toks else line)
        name = toks[0]
        # Field types are not needed for the translation: drop `:: Type`
        typed = split_top_level(toks[1:], "::")
        rest = typed[0]
        if not rest:
            return RecordField(name.value, None, name.line)
        if rest[0].kind != "=" or len(rest) < 2:
            raise ZincSyntaxError(f"bad record field {name.value}", name.line)
        return RecordField(name.value, parse_expr(rest[1:]), name.line)

    def include(self, kind: str, toks: list[Token], line: int) -> list[Form]:
        inner = self._parenthesized(toks, line)
        if len(inner) != 1 or inner[0].kind != "string":
            raise ZincSyntaxError(f"badly formed -{kind}", line)
        path = self._find_include(kind, inner[0].value)
        if path is None:
            raise ZincSyntaxError(f"can't find include file {inner[0].value!r}", line)
        if path.resolve() in (f.resolve() for f in self.files):
            raise ZincSyntaxError(f"recursive include of {inner[0].value!r}", line)
        try:
            text = read_header(path)
        except ZincReadError as e:
            raise ZincSyntaxError(f"can't read include file {inner[0].value!r}: {e}", line)
        return self.read(text, path)

    def _find_include(self, kind: str, name: str) -> Optional[Path]:
        target = Path(name)
        if kind == "include_lib":
            parts = target.parts
            if len(parts) > 1:
                root = self.pp.lib_dir(parts[0])
                if root is not None and Path(root, *parts[1:]).is_file():
                    return Path(root, *parts[1:])
        candidates = [target] if target.is_absolute() else (
            [self.current_file.parent / target] + [d / target for d in self.pp.include_path]
        )
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    # ----------------------
    # Macro expansion
    # ----------------------
    def expand(self, toks: list[Token], depth: int = 0) -> list[Token]:
        if depth > MAX_EXPANSION_DEPTH:
            raise ZincSyntaxError("macro expansion too deep", toks[0].line if toks else None)
        out: list[Token] = []
        i = 0
        while i < len(toks):
            tok = toks[i]
            nxt = toks[i + 1] if i + 1 < len(toks) else None
            if tok.kind != "?" or nxt is None or nxt.kind not in ("atom", "var"):
                out.append(tok)
                i += 1
                continue
            name = nxt.value
            defs = self.table.get(name)
            if not defs:
                raise ZincSyntaxError(f"undefined macro '{name}'", tok.line)
            i += 2
            args: list[list[Token]] = []
            mdef = None
            if i < len(toks) and toks[i].kind == "(":
                close = _matching(toks, i)
                inner = toks[i + 1:close]
                args = split_top_level(inner) if inner else []
                mdef = defs.get(len(args))
                if mdef is not None:
                    i = close + 1
            if mdef is None:
                mdef = defs.get(NONE) or defs.get(PREDEFINED)
            if mdef is None:
                raise ZincSyntaxError(f"undefined macro '{name}/{len(args)}'", tok.line)
            if PREDEFINED in defs:
                out.extend(self._predefined(name, mdef, tok.line))
            else:
                body = self._substitute(mdef, args if mdef.params else [], tok.line)
                out.extend(self.expand(body, depth + 1))
        return out

    def _predefined(self, name: str, mdef: MacroDef, line: int) -> list[Token]:
        if name == "LINE":
            return [Token("integer", line, line)]
        if name == "FILE":
            return [Token("string", str(self.current_file), line)]
        return [tok._replace(line=line) for tok in mdef.body]

    @staticmethod
    def _substitute(mdef: MacroDef, args: list[list[Token]], line: int) -> list[Token]:
        bindings = dict(zip(mdef.params, args))
        out: list[Token] = []
        body = list(mdef.body)
        i = 0
        while i < len(body):
            tok = body[i]
            if tok.kind == "??" and i + 1 < len(body) and body[i + 1].value in bindings:
                out.append(Token("string", tokens_to_text(bindings[body[i + 1].value]), line))
                i += 2
                continue
            if tok.kind == "var" and tok.value in bindings:
                out.extend(bindings[tok.value])
            else:
                out.append(tok._replace(line=line))
            i += 1
        return out
