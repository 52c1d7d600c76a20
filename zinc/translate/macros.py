"""Translate foreign macro definitions into native multi-clause macros.

    -define(SQ(N), N * N).   ->   (defmacro SQ ((list N) `(* ,N ,N)))
    -define(ANSWER, 42).     ->   (defmacro ANSWER (_ `42))

Every definition of a macro becomes one clause. Clauses keep the order of
the macro table, except that the object-style (no argument) definition is
always moved last: it is the catch-all and would otherwise shadow the
definitions taking arguments, e.g. with

    -define(foo, 42).
    -define(foo(), 17).

`(foo)` must select the `(list)` clause. The catch-all uses the wildcard
pattern `_`, so an object-style macro accepts any argument list.

A definition whose body is not exactly one expression is skipped, as is one
that fails to parse or translate; the other definitions of the same macro
are still translated. A macro with no clause left is omitted.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from zinc import SExpression
from zinc.diagnostics import Diagnostic, INFO, WARNING, report
from zinc.errors import ZincError, ZincMacroTranslationError, format_error
from zinc.foreign.forms import Arity, MacroDef, MacroDefs, MacroTable, NONE, PREDEFINED
from zinc.foreign.parser import parse_exprs
from zinc.foreign.tokens import Token
from zinc.translate.expr import from_expr
from zinc.types.symbol import Symbol, DEFMACRO, LIST, QUASIQUOTE, WILDCARD

logger = logging.getLogger(__name__)


def trans_macros(
    macro_defs: MacroTable,
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> list[SExpression]:
    """Translate a macro table in table order, ignoring undefined and predefined macros."""
    result = []
    for name, defs in macro_defs.items():
        mdef = trans_macro(name, defs, diagnostics, strict)
        if mdef is not None:
            result.append(mdef)
    return result


def trans_macro(
    name: str,
    defs: Optional[MacroDefs],
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> Optional[SExpression]:
    if defs is None:  # Undefined macros
        return None
    if PREDEFINED in defs:
        return None
    clauses = trans_macro_defs(name, defs, diagnostics, strict)
    if not clauses:
        return None
    return [DEFMACRO, Symbol(name)] + clauses


def order_defs(defs: MacroDefs) -> list[tuple[Arity, MacroDef]]:
    """Definitions in table order with the no argument version last."""
    ordered = [(arity, d) for arity, d in defs.items() if arity != NONE]
    if NONE in defs:
        ordered.append((NONE, defs[NONE]))
    return ordered


def trans_macro_defs(
    name: str,
    defs: MacroDefs,
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> list[SExpression]:
    clauses = []
    for arity, mdef in order_defs(defs):
        try:
            template = trans_macro_body(mdef.params, mdef.body)
        except ZincError as e:
            err = ZincMacroTranslationError(name, str(e))
            if strict:
                raise err from e
            report(logger, diagnostics, WARNING,
                   f"{format_error(err)}/{_arity_label(arity)}: {e}", mdef.line, name)
            continue
        if template is None:
            if strict:
                raise ZincMacroTranslationError(name, "body is not a single expression")
            report(logger, diagnostics, INFO,
                   f"macro {name}/{_arity_label(arity)} skipped: body is not a single expression",
                   mdef.line, name)
            continue
        if arity == NONE:
            clauses.append([WILDCARD, template])
        else:
            clauses.append([[LIST] + [Symbol(p) for p in mdef.params], template])
    return clauses


def _arity_label(arity: Arity) -> str:
    return "none" if arity == NONE else str(arity)


def trans_macro_body(params: Iterable[str], tokens: Iterable[Token]) -> Optional[SExpression]:
    """Quasi-quoted native template for a macro body, None unless it is one expression."""
    toks = capture_args(params, trans_qm(tokens))
    if not toks:
        return None
    # Only single expressions, more would not fit in one quasi-quote
    exprs = parse_exprs(toks)
    if len(exprs) != 1:
        return None
    return [QUASIQUOTE, from_expr(exprs[0])]


def trans_qm(tokens: Iterable[Token]) -> list[Token]:
    """Rewrite macro uses as calls: ?Name( -> Name( and ?Name -> Name().

    The name becomes an atom token whatever its spelling, so `?Sune` and
    `?sune` both translate to a call.
    """
    toks = list(tokens)
    out: list[Token] = []
    i = 0
    while i < len(toks):
        tok = toks[i]
        if tok.kind == "?" and i + 1 < len(toks) and toks[i + 1].kind in ("atom", "var"):
            name = toks[i + 1]
            out.append(Token("atom", name.value, name.line))
            if i + 2 < len(toks) and toks[i + 2].kind == "(":
                out.append(toks[i + 2])
                i += 3
            else:
                out += [Token("(", "(", tok.line), Token(")", ")", tok.line)]
                i += 2
        else:
            out.append(tok)
            i += 1
    return out


def capture_args(params: Iterable[str], tokens: Iterable[Token]) -> list[Token]:
    """Wrap every variable naming a formal parameter in unquote( ... )."""
    params = set(params)
    out: list[Token] = []
    for tok in tokens:
        if tok.kind == "var" and tok.value in params:
            out += [
                Token("atom", "unquote", tok.line),
                Token("(", "(", tok.line),
                tok,
                Token(")", ")", tok.line),
            ]
        else:
            out.append(tok)
    return out
