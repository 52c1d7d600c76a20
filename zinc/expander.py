from __future__ import annotations

from typing import Callable, Optional

from zinc import SExpression
from zinc.errors import ZincArityError, ZincError, ZincSyntaxError
from zinc.include import Includer
from zinc.types.state import ExpanderState
from zinc.types.symbol import (
    Symbol, DEFMACRO, DEFRECORD, INCLUDE_FILE, INCLUDE_LIB, LIST, PROGN, QUASIQUOTE,
    QUOTE, UNQUOTE, UNQUOTE_SPLICING, WILDCARD, is_form,
)

# A transformer gets the unevaluated argument forms, the macro environment and
# the expander state, and returns the expansion with the (new) state.
Transformer = Callable[[list, "MacroEnvironment", ExpanderState], tuple[SExpression, ExpanderState]]

# Bounds both repeated head expansion and the nesting of expansions
MAX_EXPANSION_DEPTH = 200


def fill_template(expr: SExpression, bindings: dict[Symbol, SExpression], depth: int = 1) -> SExpression:
    """Build the expansion of a quasi-quoted template.

    `(unquote X)` at depth 1 is replaced by the argument bound to X and
    `(unquote-splicing X)` splices it; everything else is copied literally.
    """

    def _value(item: SExpression) -> SExpression:
        if isinstance(item, Symbol):
            if item not in bindings:
                raise ZincError(f"unbound variable {item} in macro template")
            return bindings[item]
        return fill_template(item, bindings, depth)

    def _process_list_part(seq):
        result_list = []
        for item in seq:
            if isinstance(item, list) and len(item) == 2:
                head, arg = item
                if head == QUASIQUOTE:
                    result_list.append([QUASIQUOTE, fill_template(arg, bindings, depth + 1)])
                    continue
                if head == UNQUOTE:
                    result_list.append(_value(arg) if depth == 1 else [UNQUOTE, fill_template(arg, bindings, depth - 1)])
                    continue
                if head == UNQUOTE_SPLICING and depth == 1:
                    spliced = _value(arg)
                    if not isinstance(spliced, list):
                        raise ZincError("unquote-splicing must produce a list")
                    result_list.extend(spliced)
                    continue
            result_list.append(fill_template(item, bindings, depth))
        return result_list

    # Dotted list (tuple) support: (list_part, tail)
    if isinstance(expr, tuple) and len(expr) == 2:
        lst, tail = expr
        return _process_list_part(lst), fill_template(tail, bindings, depth)

    if not isinstance(expr, list) or not expr:
        return expr

    if len(expr) == 2 and expr[0] == UNQUOTE and depth == 1:
        return _value(expr[1])
    return _process_list_part(expr)


class ClauseMacro:
    """A multi-clause macro as produced by the foreign macro translator.

    Each clause is `(pattern template)`. The pattern `_` matches any argument
    list, `(list A B ...)` matches exactly that many arguments. The template
    must be a quasi-quoted form. Clauses are tried in order.
    """

    def __init__(self, name: Symbol, clauses: list[SExpression]):
        self.name = name
        self.clauses = clauses

    @classmethod
    def from_form(cls, form: SExpression) -> ClauseMacro:
        if not is_form(form, DEFMACRO) or len(form) < 3 or not isinstance(form[1], Symbol):
            raise ZincSyntaxError(f"bad defmacro form {form!r}")
        for clause in form[2:]:
            if not isinstance(clause, list) or len(clause) < 2:
                raise ZincSyntaxError(f"bad clause in defmacro {form[1]}")
        return cls(form[1], list(form[2:]))

    @staticmethod
    def match(pattern: SExpression, args: list[SExpression]) -> Optional[dict[Symbol, SExpression]]:
        if pattern == WILDCARD:
            return {}
        if is_form(pattern, LIST):
            params = pattern[1:]
            if len(params) != len(args):
                return None
            return {p: a for p, a in zip(params, args) if p != WILDCARD}
        raise ZincSyntaxError(f"unsupported macro pattern {pattern!r}")

    def __call__(self, args: list[SExpression], env: MacroEnvironment, state: ExpanderState):
        for clause in self.clauses:
            bindings = self.match(clause[0], args)
            if bindings is None:
                continue
            body = clause[-1]
            if not is_form(body, QUASIQUOTE):
                raise ZincSyntaxError(f"macro {self.name}: clause body must be a quasi-quoted template")
            return fill_template(body[1], bindings), state
        raise ZincArityError(f"no clause of macro {self.name} matches {len(args)} argument(s)")


class MacroEnvironment:
    """
    Macro environment mapping macro names (Symbols) to transformers.

    Features:
    - Head-position macro expansion
    - Recursive nested expansion
    - Dotted list support
    - State threading through every transformer call
    """

    def __init__(self):
        self.macros: dict[Symbol, Transformer] = {}

    def define_macro(self, name: Symbol, transformer: Transformer):
        self.macros[name] = transformer

    def is_macro(self, sym: SExpression) -> bool:
        return isinstance(sym, Symbol) and sym in self.macros

    # Single-step head expansion
    def expand_1(self, form: SExpression, state: ExpanderState) -> tuple[SExpression, ExpanderState]:
        """Expand only the head-position macro if present."""
        if isinstance(form, list) and form and self.is_macro(form[0]):
            return self.macros[form[0]](form[1:], self, state)
        return form, state  # Not a macro call, unchanged

    # Fixed-point head expansion
    def macro_expand_head(self, form: SExpression, state: ExpanderState) -> tuple[SExpression, ExpanderState]:
        cur = form
        for _ in range(MAX_EXPANSION_DEPTH):
            nxt, state = self.expand_1(cur, state)
            if nxt == cur:
                return cur, state
            cur = nxt
        raise ZincError(f"macro expansion of {form[0]} does not terminate")

    # Full expansion
    def macro_expand_all(
        self, form: SExpression, state: ExpanderState, depth: int = 0
    ) -> tuple[SExpression, ExpanderState]:
        if depth > MAX_EXPANSION_DEPTH:
            raise ZincError("macro expansion nested too deeply")
        expanded, state = self.macro_expand_head(form, state)

        # Do not recurse into (quote ...) or (quasiquote ...) templates.
        if isinstance(expanded, list):
            if expanded and expanded[0] in (QUOTE, QUASIQUOTE):
                return expanded, state
            result = []
            for x in expanded:
                x, state = self.macro_expand_all(x, state, depth + 1)
                result.append(x)
            return result, state

        if isinstance(expanded, tuple) and len(expanded) == 2:
            lst, tail = expanded
            lst_exp = []
            for x in lst:
                x, state = self.macro_expand_all(x, state, depth + 1)
                lst_exp.append(x)
            tail_exp, state = self.macro_expand_all(tail, state, depth + 1)
            return (lst_exp, tail_exp), state

        return expanded, state


def register(macros: MacroEnvironment, includer: Optional[Includer] = None) -> None:
    """Install include-file and include-lib."""
    includer = includer or Includer()
    macros.define_macro(INCLUDE_FILE, includer.file)
    macros.define_macro(INCLUDE_LIB, includer.lib)


def expand_program(
    forms: list[SExpression],
    macros: MacroEnvironment,
    state: Optional[ExpanderState] = None,
) -> tuple[list[SExpression], ExpanderState]:
    """Expand top-level forms, splicing (progn ...) in place.

    defmacro forms produced along the way become available to the forms
    after them; defrecord forms are recorded in the state.
    """
    if state is None:
        state = ExpanderState()
    out: list[SExpression] = []
    for form in forms:
        expanded, state = macros.macro_expand_head(form, state)
        if is_form(expanded, PROGN):
            inner, state = expand_program(expanded[1:], macros, state)
            out.extend(inner)
        elif is_form(expanded, DEFMACRO):
            macros.define_macro(expanded[1], ClauseMacro.from_form(expanded))
            out.append(expanded)
        elif is_form(expanded, DEFRECORD):
            state = state.with_record(expanded[1], expanded)
            out.append(expanded)
        else:
            expanded, state = macros.macro_expand_all(expanded, state)
            out.append(expanded)
    return out, state
