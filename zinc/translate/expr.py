"""Foreign expression to native form conversion.

    X            -> X
    atom         -> 'atom
    42, 1.5, $a  -> 42, 1.5, 97
    "str"        -> "str"
    [], [A, B]   -> (), (list A B)
    [H | T]      -> (cons H T)
    [A, B | T]   -> (list* A B T)
    {A, B}       -> (tuple A B)
    A + B, -A    -> (+ A B), (- A)
    P = E        -> (= P E)
    f(A)         -> (f A)
    F(A)         -> (funcall F A)
    m:f(A)       -> (m:f A)
    fun f/1      -> (function f 1)
    #r{a = 1}    -> (make-r a 1)
    E#r.a        -> (r-a E)
    E#r{a = 1}   -> (set-r E a 1)
    begin A, B end -> (progn A B)
"""

from __future__ import annotations

from zinc import ForeignExpr, SExpression
from zinc.errors import ZincSyntaxError
from zinc.types.symbol import Symbol, LIST, PROGN, QUOTE

TUPLE = Symbol("tuple")
CONS = Symbol("cons")
LIST_STAR = Symbol("list*")
FUNCALL = Symbol("funcall")
CALL = Symbol("call")
FUNCTION = Symbol("function")
MATCH = Symbol("=")


def from_lit(value) -> SExpression:
    """Convert a literal (field or record name, number, string)."""
    if isinstance(value, str):
        return Symbol(value)
    if isinstance(value, (int, float)):
        return value
    raise ZincSyntaxError(f"cannot convert literal {value!r}")


def from_expr(expr: ForeignExpr) -> SExpression:
    tag = expr[0]
    if tag == "var":
        return Symbol(expr[2])
    if tag == "atom":
        return [QUOTE, Symbol(expr[2])]
    if tag in ("integer", "float", "char", "string"):
        return expr[2]
    if tag == "nil":
        return []
    if tag == "cons":
        return _from_cons(expr)
    if tag == "tuple":
        return [TUPLE] + [from_expr(e) for e in expr[2]]
    if tag == "op":
        return [Symbol(expr[2])] + [from_expr(e) for e in expr[3:]]
    if tag == "match":
        return [MATCH, from_expr(expr[2]), from_expr(expr[3])]
    if tag == "call":
        return _from_call(expr[2], [from_expr(a) for a in expr[3]])
    if tag == "block":
        return [PROGN] + [from_expr(e) for e in expr[2]]
    if tag == "fun":
        return [FUNCTION] + [from_lit(v) for v in expr[2][1:]]
    if tag == "record":
        return _from_record(expr)
    if tag == "record_field":
        _, _, base, name, field = expr
        return [Symbol(f"{name}-{field}"), from_expr(base)]
    raise ZincSyntaxError(f"cannot translate {tag} expression", expr[1])


def _from_cons(expr: ForeignExpr) -> SExpression:
    heads = []
    while expr[0] == "cons":
        heads.append(from_expr(expr[2]))
        expr = expr[3]
    if expr[0] == "nil":
        return [LIST] + heads
    tail = from_expr(expr)
    if len(heads) == 1:
        return [CONS, heads[0], tail]
    return [LIST_STAR] + heads + [tail]


def _from_call(func: ForeignExpr, args: list[SExpression]) -> SExpression:
    if func[0] == "atom":
        return [Symbol(func[2])] + args
    if func[0] == "remote":
        mod, fun = func[2], func[3]
        if mod[0] == "atom" and fun[0] == "atom":
            return [Symbol(f"{mod[2]}:{fun[2]}")] + args
        return [CALL, from_expr(mod), from_expr(fun)] + args
    return [FUNCALL, from_expr(func)] + args


def _from_record(expr: ForeignExpr) -> SExpression:
    if len(expr) == 4:
        _, _, name, fields = expr
        head = [Symbol(f"make-{name}")]
    else:
        _, _, base, name, fields = expr
        head = [Symbol(f"set-{name}"), from_expr(base)]
    for field, value in fields:
        head += [Symbol(field), from_expr(value)]
    return head
