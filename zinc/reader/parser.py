"""
  Native Lisp Reader, Lexer and Parser

Reads the native dialect of included `.lisp`/`.lfe` files and emits Python
primitives instead of Cons cells:

    - lists -> Python list
    - dotted lists -> (list_part, tail)
    - symbols -> Symbol
    - strings -> str
    - numbers -> int/float
    - characters -> str of length one
    - quote forms -> [quote, expr], [quasiquote, expr], [unquote, expr], ...
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterator, Optional

from zinc import SExpression
from zinc.errors import ZincReadError, ZincSyntaxError
from zinc.types.symbol import Symbol, QUOTE, QUASIQUOTE, UNQUOTE, UNQUOTE_SPLICING


TOKEN_RE = re.compile(
    r"\s*("
    r"(?P<comment>;[^\n]*)"  # single-line comment
    r"|(?P<ml_start>#\|)"  # multi-line comment start
    r"|(?P<quote>[\'`])"  # ' and `
    r"|(?P<unquote>,@|,)"  # , and ,@
    r"|(?P<lparen>\()"  # (
    r"|(?P<rparen>\))"  # )
    r'|(?P<string>"(?:\\.|[^\\"])*")'  # double-quoted strings
    r"|(?P<char>#\\(?:newline|space|tab|return|.))"  # character literals
    r"|(?P<radix>#b[01]+|#o[0-7]+|#x[0-9A-Fa-f]+)"  # binary, octal, hex
    r'|(?P<symbol>[^\s()\'",;`]+)'  # fallback: symbols
    r")",
    re.DOTALL,
)

NAMED_CHARS: dict[str, str] = {
    "space": " ",
    "newline": "\n",
    "tab": "\t",
    "return": "\r",
}

QUOTE_FORMS: dict[str, Symbol] = {
    "'": QUOTE,
    "`": QUASIQUOTE,
    ",": UNQUOTE,
    ",@": UNQUOTE_SPLICING,
}


def lex(source: str) -> Iterator[tuple[str, str]]:
    """Token generator: yields (token_type, token_value) tuples."""
    pos = 0
    n = len(source)

    while pos < n:
        m = TOKEN_RE.match(source, pos)
        if not m or m.end() == pos:
            if source[pos:].strip() == "":
                break
            raise ZincSyntaxError(f"Unexpected char at {pos}: {source[pos]!r}")
        if m.group("comment"):
            pos = m.end()
            continue
        if m.group("ml_start"):
            pos = m.end()
            depth = 1
            while depth > 0:
                if pos >= n:
                    raise ZincSyntaxError("Unterminated multi-line comment")
                if source.startswith("#|", pos):
                    depth += 1
                    pos += 2
                elif source.startswith("|#", pos):
                    depth -= 1
                    pos += 2
                else:
                    pos += 1
            continue
        for nm in TOKEN_RE.groupindex:
            if m.group(nm):
                yield nm, m.group(nm)
                break
        pos = m.end()


class TokenStream:
    def __init__(self, token_iter: Iterator[tuple[str, str]]):
        self.tokens = iter(token_iter)
        self.buffer: list[tuple[str, str]] = []

    def peek(self) -> tuple[Optional[str], Optional[str]]:
        if not self.buffer:
            try:
                self.buffer.append(next(self.tokens))
            except StopIteration:
                return None, None
        return self.buffer[0]

    def advance(self) -> tuple[Optional[str], Optional[str]]:
        if self.buffer:
            return self.buffer.pop(0)
        return next(self.tokens, (None, None))

    def parse_expr(self) -> SExpression:
        tok_type, tok_val = self.peek()
        if tok_type is None:
            return None

        if tok_type == "symbol":
            self.advance()
            if tok_val.isdigit() or (tok_val.startswith("-") and tok_val[1:].isdigit()):
                return int(tok_val)
            try:
                return float(tok_val)
            except ValueError:
                return Symbol(tok_val)

        # Quote forms
        if tok_type in ("quote", "unquote"):
            self.advance()
            if self.peek()[0] is None:
                raise ZincSyntaxError(f"Expected an expression after {tok_val!r}")
            expr = self.parse_expr()
            return [QUOTE_FORMS[tok_val], expr]

        # List or dotted list
        if tok_type == "lparen":
            self.advance()
            items = []
            while True:
                if self.peek()[0] == "rparen":
                    self.advance()
                    break
                if self.peek()[0] is None:
                    raise ZincSyntaxError("Unmatched '('")
                if self.peek()[0] == "symbol" and self.peek()[1] == ".":
                    self.advance()
                    cdr_expr = self.parse_expr()
                    if self.peek()[0] != "rparen":
                        raise ZincSyntaxError("Expected ')' after dotted cdr")
                    self.advance()
                    return items, cdr_expr  # tuple for a dotted list
                items.append(self.parse_expr())
            return items

        if tok_type == "rparen":
            raise ZincSyntaxError("Unexpected ')'")

        if tok_type == "char":
            self.advance()
            val = tok_val[2:]  # strip off "#\"
            if len(val) == 1:
                return val
            return NAMED_CHARS.get(val.lower(), val)

        if tok_type == "string":
            self.advance()
            return ast.literal_eval(tok_val)

        if tok_type == "radix":
            self.advance()
            base = {"b": 2, "o": 8, "x": 16}[tok_val[1]]
            return int(tok_val[2:], base)

        raise ZincSyntaxError(f"Unknown token: {tok_type} {tok_val}")

    def parse_all(self) -> Iterator[SExpression]:
        while True:
            tok_type, _ = self.peek()
            if tok_type is None:
                break
            yield self.parse_expr()


def read_string(source: str) -> list[SExpression]:
    return list(TokenStream(lex(source)).parse_all())


def read_file(path: str | Path) -> list[SExpression]:
    """Read all forms of a native source file."""
    try:
        source = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ZincReadError(f"{path}: {e.strerror or e}", path) from e
    except UnicodeDecodeError as e:
        raise ZincReadError(f"{path}: {e}", path) from e
    try:
        return read_string(source)
    except ZincSyntaxError as e:
        raise ZincReadError(f"{path}: {e}", path) from e
