from __future__ import annotations
import sys


class Symbol:
    __slots__ = ("id",)

    def __init__(self, name: str):
        # Interned so that the translators can compare names cheaply
        self.id = sys.intern(name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Symbol) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self):
        return f"Symbol({self.id!r})"

    def __str__(self):
        return self.id


# Heads of the native forms produced and consumed by the include machinery
PROGN = Symbol("progn")
DEFRECORD = Symbol("defrecord")
DEFMACRO = Symbol("defmacro")
QUOTE = Symbol("quote")
QUASIQUOTE = Symbol("quasiquote")
UNQUOTE = Symbol("unquote")
UNQUOTE_SPLICING = Symbol("unquote-splicing")
LIST = Symbol("list")
WILDCARD = Symbol("_")
INCLUDE_FILE = Symbol("include-file")
INCLUDE_LIB = Symbol("include-lib")


def is_form(expr, head: Symbol) -> bool:
    """True if `expr` is a list form whose head is `head`."""
    return isinstance(expr, list) and bool(expr) and expr[0] == head
