from __future__ import annotations

import json

from zinc import SExpression
from zinc.types.symbol import Symbol, QUOTE, QUASIQUOTE, UNQUOTE, UNQUOTE_SPLICING

# ----------------- Defaults -----------------
DEFAULT_OPTIONS = {
    "max_line_length": 80,
    "indent": 2,
}

SHORTHANDS = {
    QUOTE: "'",
    QUASIQUOTE: "`",
    UNQUOTE: ",",
    UNQUOTE_SPLICING: ",@",
}


def to_source(expr: SExpression) -> str:
    """Print a native form on one line."""
    if isinstance(expr, Symbol):
        return str(expr)
    if isinstance(expr, bool):
        return "true" if expr else "false"
    if isinstance(expr, str):
        return json.dumps(expr, ensure_ascii=False)
    if isinstance(expr, tuple) and len(expr) == 2:
        lst, tail = expr
        return "(" + " ".join(to_source(e) for e in lst) + " . " + to_source(tail) + ")"
    if isinstance(expr, list):
        if len(expr) == 2 and isinstance(expr[0], Symbol) and expr[0] in SHORTHANDS:
            return SHORTHANDS[expr[0]] + to_source(expr[1])
        return "(" + " ".join(to_source(e) for e in expr) + ")"
    return str(expr)


def pformat(expr: SExpression, indent: int = 0, options: dict = DEFAULT_OPTIONS) -> str:
    """Print a native form, breaking lists that do not fit on a line.

    Broken lists keep their head and first argument on the opening line and
    put every further element on its own line.
    """
    pad = " " * indent
    flat = to_source(expr)
    if len(pad) + len(flat) <= options.get("max_line_length", 80):
        return pad + flat
    if not isinstance(expr, list) or len(expr) < 3:
        return pad + flat
    step = options.get("indent", 2)
    head = pad + "(" + to_source(expr[0]) + " " + to_source(expr[1])
    rest = [pformat(e, indent + step, options) for e in expr[2:]]
    return "\n".join([head] + rest) + ")"
