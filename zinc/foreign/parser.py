"""Foreign expression parser.

A recursive descent parser over `Token` lists for the expression subset that
single-expression macro bodies and record defaults use. Operator precedence,
lowest first:

    =  !                        right
    orelse                      right
    andalso                     right
    == /= =< < >= > =:= =/=     non-associative
    ++ --                       right
    + - bor bxor bsl bsr or xor left
    * / div rem band and        left
    prefix + - bnot not
    #  (record access/update)
    :  (remote calls)

Expressions are tuples tagged by their first element, the second element
always being the line number.
"""

from __future__ import annotations

from typing import Optional

from zinc import ForeignExpr
from zinc.errors import ZincSyntaxError
from zinc.foreign.tokens import Token

COMP_OPS = frozenset({"==", "/=", "=<", "<", ">=", ">", "=:=", "=/="})
LIST_OPS = frozenset({"++", "--"})
ADD_OPS = frozenset({"+", "-", "bor", "bxor", "bsl", "bsr", "or", "xor"})
MULT_OPS = frozenset({"*", "/", "div", "rem", "band", "and"})
PREFIX_OPS = frozenset({"+", "-", "bnot", "not"})

UNSUPPORTED = {
    "case": "case expressions",
    "if": "if expressions",
    "receive": "receive expressions",
    "try": "try expressions",
    "catch": "catch expressions",
    "maybe": "maybe expressions",
    "<<": "binaries",
}


class _Parser:
    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    # ----------------------
    # Token helpers
    # ----------------------
    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def peek_kind(self, offset: int = 0) -> Optional[str]:
        tok = self.peek(offset)
        return tok.kind if tok else None

    def line(self) -> Optional[int]:
        tok = self.peek()
        if tok:
            return tok.line
        return self.tokens[-1].line if self.tokens else None

    def advance(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise ZincSyntaxError("unexpected end of expression", self.line())
        self.pos += 1
        return tok

    def expect(self, kind: str) -> Token:
        tok = self.peek()
        if tok is None or tok.kind != kind:
            found = "end of expression" if tok is None else repr(tok.value)
            raise ZincSyntaxError(f"expected {kind!r}, found {found}", self.line())
        self.pos += 1
        return tok

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    # ----------------------
    # Sequences
    # ----------------------
    def exprs(self) -> list[ForeignExpr]:
        result = [self.expr()]
        while self.peek_kind() == ",":
            self.advance()
            result.append(self.expr())
        return result

    def expr(self) -> ForeignExpr:
        left = self.expr_150()
        if self.peek_kind() in ("=", "!"):
            tok = self.advance()
            right = self.expr()
            if tok.kind == "=":
                return ("match", tok.line, left, right)
            return ("op", tok.line, "!", left, right)
        return left

    def expr_150(self) -> ForeignExpr:
        left = self.expr_160()
        if self.peek_kind() == "orelse":
            tok = self.advance()
            return ("op", tok.line, "orelse", left, self.expr_150())
        return left

    def expr_160(self) -> ForeignExpr:
        left = self.expr_200()
        if self.peek_kind() == "andalso":
            tok = self.advance()
            return ("op", tok.line, "andalso", left, self.expr_160())
        return left

    def expr_200(self) -> ForeignExpr:
        left = self.expr_300()
        if self.peek_kind() in COMP_OPS:
            tok = self.advance()
            left = ("op", tok.line, tok.kind, left, self.expr_300())
            if self.peek_kind() in COMP_OPS:
                raise ZincSyntaxError("comparison operators are non-associative", self.line())
        return left

    def expr_300(self) -> ForeignExpr:
        left = self.expr_400()
        if self.peek_kind() in LIST_OPS:
            tok = self.advance()
            return ("op", tok.line, tok.kind, left, self.expr_300())
        return left

    def expr_400(self) -> ForeignExpr:
        left = self.expr_500()
        while self.peek_kind() in ADD_OPS:
            tok = self.advance()
            left = ("op", tok.line, tok.kind, left, self.expr_500())
        return left

    def expr_500(self) -> ForeignExpr:
        left = self.expr_600()
        while self.peek_kind() in MULT_OPS:
            tok = self.advance()
            left = ("op", tok.line, tok.kind, left, self.expr_600())
        return left

    def expr_600(self) -> ForeignExpr:
        if self.peek_kind() in PREFIX_OPS:
            tok = self.advance()
            return ("op", tok.line, tok.kind, self.expr_600())
        return self.expr_700()

    # ----------------------
    # Calls and records
    # ----------------------
    def expr_700(self) -> ForeignExpr:
        if self.peek_kind() == "#":
            expr = self.record_expr(None)
        else:
            expr = self.expr_800()
        while True:
            kind = self.peek_kind()
            if kind == "(":
                line = self.advance().line
                expr = ("call", line, expr, self.args(")"))
            elif kind == "#":
                expr = self.record_expr(expr)
            else:
                return expr

    def expr_800(self) -> ForeignExpr:
        expr = self.expr_max()
        if self.peek_kind() == ":":
            tok = self.advance()
            return ("remote", tok.line, expr, self.expr_max())
        return expr

    def record_expr(self, base: Optional[ForeignExpr]) -> ForeignExpr:
        line = self.expect("#").line
        name = self.expect("atom").value
        if self.peek_kind() == ".":
            self.advance()
            field = self.expect("atom").value
            if base is None:
                raise ZincSyntaxError("record index expressions are not supported", line)
            return ("record_field", line, base, name, field)
        self.expect("{")
        fields = []
        if self.peek_kind() != "}":
            while True:
                field = self.advance()
                if field.kind not in ("atom", "var"):
                    raise ZincSyntaxError(f"bad record field {field.value!r}", field.line)
                self.expect("=")
                fields.append((field.value, self.expr()))
                if self.peek_kind() != ",":
                    break
                self.advance()
        self.expect("}")
        if base is None:
            return ("record", line, name, fields)
        return ("record", line, base, name, fields)

    def args(self, close: str) -> list[ForeignExpr]:
        if self.peek_kind() == close:
            self.advance()
            return []
        result = self.exprs()
        self.expect(close)
        return result

    # ----------------------
    # Primaries
    # ----------------------
    def expr_max(self) -> ForeignExpr:
        tok = self.peek()
        if tok is None or tok.kind == "dot":
            raise ZincSyntaxError("unexpected end of expression", self.line())
        kind = tok.kind
        if kind in ("var", "atom", "integer", "float", "char"):
            self.advance()
            return (kind, tok.line, tok.value)
        if kind == "string":
            self.advance()
            text = tok.value
            while self.peek_kind() == "string":
                text += self.advance().value
            return ("string", tok.line, text)
        if kind == "(":
            self.advance()
            expr = self.expr()
            self.expect(")")
            return expr
        if kind == "{":
            self.advance()
            return ("tuple", tok.line, self.args("}"))
        if kind == "[":
            return self.list_expr()
        if kind == "begin":
            self.advance()
            body = self.exprs()
            self.expect("end")
            return ("block", tok.line, body)
        if kind == "fun":
            return self.fun_expr()
        if kind in UNSUPPORTED:
            raise ZincSyntaxError(f"{UNSUPPORTED[kind]} are not supported", tok.line)
        raise ZincSyntaxError(f"syntax error before {tok.value!r}", tok.line)

    def list_expr(self) -> ForeignExpr:
        line = self.expect("[").line
        if self.peek_kind() == "]":
            self.advance()
            return ("nil", line)
        heads = [self.expr()]
        if self.peek_kind() == "||":
            raise ZincSyntaxError("list comprehensions are not supported", line)
        while self.peek_kind() == ",":
            self.advance()
            heads.append(self.expr())
        if self.peek_kind() == "|":
            self.advance()
            tail = self.expr()
        else:
            tail = ("nil", line)
        self.expect("]")
        for head in reversed(heads):
            tail = ("cons", line, head, tail)
        return tail

    def fun_expr(self) -> ForeignExpr:
        line = self.expect("fun").line
        first = self.advance()
        if first.kind == "atom" and self.peek_kind() == ":":
            self.advance()
            name = self.expect("atom").value
            self.expect("/")
            arity = self.expect("integer").value
            return ("fun", line, ("function", first.value, name, arity))
        if first.kind == "atom" and self.peek_kind() == "/":
            self.advance()
            arity = self.expect("integer").value
            return ("fun", line, ("function", first.value, arity))
        raise ZincSyntaxError("fun expressions with clauses are not supported", line)


def parse_exprs(tokens: list[Token]) -> list[ForeignExpr]:
    """Parse a comma separated expression sequence.

    A single trailing dot token is allowed. Raises ZincSyntaxError when the
    tokens do not make up a complete expression sequence.
    """
    if tokens and tokens[-1].kind == "dot":
        tokens = tokens[:-1]
    if not tokens:
        raise ZincSyntaxError("empty expression")
    parser = _Parser(tokens)
    result = parser.exprs()
    if not parser.at_end():
        tok = parser.peek()
        raise ZincSyntaxError(f"syntax error before {tok.value!r}", tok.line)
    return result


def parse_expr(tokens: list[Token]) -> ForeignExpr:
    """Parse exactly one expression."""
    exprs = parse_exprs(tokens)
    if len(exprs) != 1:
        raise ZincSyntaxError(f"expected a single expression, got {len(exprs)}")
    return exprs[0]
