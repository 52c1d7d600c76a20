# Core type aliases for zinc's data model.
# Native (Lisp) forms are plain Python values: Symbol for symbols, list for
# lists, tuple-for-dotted-lists, str for strings and int/float for numbers.
#
# Naming guidance:
# - SExpression: a native form, as produced by the translators and the reader.
# - ForeignExpr: a parsed foreign expression, a tuple tagged by its first
#   element, e.g. ("var", 3, "X") or ("op", 3, "*", left, right).

from typing import Any

__version__ = "0.3.0"

SExpression = Any

ForeignExpr = tuple
