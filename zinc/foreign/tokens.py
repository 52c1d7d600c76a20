"""
  Foreign (Erlang-style) header lexer

Turns header source into a list of `Token(kind, value, line)`:

    - variables           -> ("var", "Name")
    - atoms               -> ("atom", "name"), quoted atoms unquoted
    - reserved words      -> (word, word), e.g. ("div", "div")
    - integers, $c chars  -> ("integer", 42), ("char", 99)
    - floats              -> ("float", 1.5)
    - strings             -> ("string", "text")
    - punctuation         -> (p, p), e.g. ("->", "->")
    - end of form         -> ("dot", ".")
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from zinc.errors import ZincSyntaxError


class Token(NamedTuple):
    kind: str
    value: object
    line: int

    def __repr__(self):
        return f"Token({self.kind!r}, {self.value!r}, {self.line})"


RESERVED_WORDS = frozenset({
    "after", "and", "andalso", "band", "begin", "bnot", "bor", "bsl", "bsr",
    "bxor", "case", "catch", "cond", "div", "end", "fun", "if", "let", "maybe",
    "not", "of", "or", "orelse", "receive", "rem", "try", "when", "xor",
})

# Longest first so that e.g. '=:=' wins over '='
PUNCTUATION = (
    "...", "=:=", "=/=", "<<", ">>", "->", "<-", "<=", "=>", ":=", "::", "..",
    "==", "/=", "=<", ">=", "++", "--", "||", "??",
    "(", ")", "{", "}", "[", "]", ",", ";", "|", ":", "#", "?", "!",
    "+", "-", "*", "/", "=", "<", ">", ".",
)

TOKEN_RE = re.compile(
    r"(?P<ws>[ \t\r\f\v]+)"
    r"|(?P<newline>\n)"
    r"|(?P<comment>%[^\n]*)"
    r"|(?P<float>\d+\.\d+(?:[eE][+-]?\d+)?)"
    r"|(?P<based>\d+#[0-9A-Za-z]+)"
    r"|(?P<integer>\d+)"
    r"|(?P<char>\$(?:\\(?:x\{[0-9A-Fa-f]+\}|x[0-9A-Fa-f]{2}|[0-7]{1,3}|\^.|.)|.))"
    r'|(?P<string>"(?:\\.|[^\\"])*")'
    r"|(?P<qatom>'(?:\\.|[^\\'])*')"
    r"|(?P<var>[A-Z_][A-Za-z0-9_@]*)"
    r"|(?P<atom>[a-z][A-Za-z0-9_@]*)"
    r"|(?P<punct>" + "|".join(re.escape(p) for p in PUNCTUATION) + r")",
    re.DOTALL,
)

ESCAPES: dict[str, str] = {
    "n": "\n", "t": "\t", "r": "\r", "s": " ", "b": "\b", "f": "\f",
    "v": "\v", "e": "\x1b", "d": "\x7f", "\\": "\\", "'": "'", '"': '"',
}

ESCAPE_RE = re.compile(r"\\(x\{[0-9A-Fa-f]+\}|x[0-9A-Fa-f]{2}|[0-7]{1,3}|\^.|.)", re.DOTALL)


def _unescape_one(esc: str) -> str:
    if esc.startswith("x{"):
        return chr(int(esc[2:-1], 16))
    if esc.startswith("x") and len(esc) == 3:
        return chr(int(esc[1:], 16))
    if esc[0] in "01234567":
        return chr(int(esc, 8))
    if esc.startswith("^"):
        return chr(ord(esc[1]) & 31)
    return ESCAPES.get(esc, esc)


def unescape(text: str) -> str:
    return ESCAPE_RE.sub(lambda m: _unescape_one(m.group(1)), text)


def _char_value(text: str) -> int:
    body = text[1:]
    if body.startswith("\\"):
        return ord(_unescape_one(body[1:]))
    return ord(body)


# A full stop ending a form: '.' followed by whitespace, a comment or the end
DOT_END_RE = re.compile(r"\.(?=[ \t\r\n%]|\Z)")


def _next_token(source: str, pos: int, line: int) -> tuple[Optional[Token], int, int]:
    """Scan one token at `pos`: (token or None for layout, new pos, new line)."""
    m = TOKEN_RE.match(source, pos)
    if not m:
        raise ZincSyntaxError(f"illegal character {source[pos]!r}", line)
    kind = m.lastgroup
    text = m.group(kind)
    pos = m.end()
    if kind == "ws" or kind == "comment":
        return None, pos, line
    if kind == "newline":
        return None, pos, line + 1
    if kind == "float":
        return Token("float", float(text), line), pos, line
    if kind == "integer":
        return Token("integer", int(text), line), pos, line
    if kind == "based":
        base, digits = text.split("#", 1)
        try:
            return Token("integer", int(digits, int(base)), line), pos, line
        except ValueError:
            raise ZincSyntaxError(f"illegal based integer {text}", line)
    if kind == "char":
        return Token("char", _char_value(text), line), pos, line
    if kind == "string":
        return Token("string", unescape(text[1:-1]), line), pos, line + text.count("\n")
    if kind == "qatom":
        return Token("atom", unescape(text[1:-1]), line), pos, line
    if kind == "var":
        return Token("var", text, line), pos, line
    if kind == "atom":
        return Token(text if text in RESERVED_WORDS else "atom", text, line), pos, line
    if text == "." and DOT_END_RE.match(source, pos - 1):
        return Token("dot", ".", line), pos, line
    return Token(text, text, line), pos, line


def lex(source: str, line: int = 1) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        tok, pos, line = _next_token(source, pos, line)
        if tok is not None:
            tokens.append(tok)
    return tokens


def scan_forms(source: str, line: int = 1) -> list[list[Token] | ZincSyntaxError]:
    """Split source into dot-terminated forms, scanning one form at a time.

    Each form is its token list (dot dropped) or, when it cannot be
    tokenized, the ZincSyntaxError; scanning then resumes after the next
    full stop so that one bad form does not hide the others. Trailing
    tokens without a final dot make up the last form.
    """
    forms: list[list[Token] | ZincSyntaxError] = []
    current: list[Token] = []
    pos = 0
    while pos < len(source):
        try:
            tok, pos, line = _next_token(source, pos, line)
        except ZincSyntaxError as e:
            m = DOT_END_RE.search(source, pos)
            end = m.end() if m else len(source)
            line += source.count("\n", pos, end)
            pos = end
            forms.append(e)
            current = []
            continue
        if tok is None:
            continue
        if tok.kind == "dot":
            forms.append(current)
            current = []
        else:
            current.append(tok)
    if current:
        forms.append(current)
    return forms


def tokens_to_text(tokens: list[Token]) -> str:
    """Render tokens back to source text, as used by the `??Arg` stringifier."""
    out = []
    for tok in tokens:
        if tok.kind == "string":
            out.append('"' + str(tok.value).replace("\\", "\\\\").replace('"', '\\"') + '"')
        elif tok.kind == "char":
            out.append("$" + chr(tok.value))
        elif tok.kind == "atom" and not re.fullmatch(r"[a-z][A-Za-z0-9_@]*", str(tok.value)):
            out.append("'" + str(tok.value) + "'")
        else:
            out.append(str(tok.value))
    text = ""
    for t in out:
        if text and _word_char(text[-1]) and _word_char(t[0]):
            text += " "
        text += t
    return text


def _word_char(c: str) -> bool:
    return c.isalnum() or c in "_@'\"$"
