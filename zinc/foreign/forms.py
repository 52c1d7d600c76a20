"""Structural forms and macro definitions produced by the preprocessor.

`Form` is a closed set of variants. Code dispatching on forms handles every
variant in `FORM_TYPES` and raises TypeError for anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from zinc import ForeignExpr
from zinc.foreign.tokens import Token


@dataclass(frozen=True)
class RecordField:
    name: str
    default: Optional[ForeignExpr] = None
    line: int = 0


@dataclass(frozen=True)
class RecordDecl:
    name: str
    fields: tuple[RecordField, ...]
    line: int = 0


@dataclass(frozen=True)
class FunctionDecl:
    name: str
    arity: int
    line: int = 0


@dataclass(frozen=True)
class TypeDecl:
    kind: str  # "type" | "opaque" | "spec" | "callback"
    name: str
    line: int = 0


@dataclass(frozen=True)
class ErrorForm:
    message: str
    line: int = 0


@dataclass(frozen=True)
class AttributeForm:
    name: str
    line: int = 0


Form = Union[RecordDecl, FunctionDecl, TypeDecl, ErrorForm, AttributeForm]

FORM_TYPES = (RecordDecl, FunctionDecl, TypeDecl, ErrorForm, AttributeForm)


# ----------------------
# Macro table
# ----------------------

# Reserved arity keys
NONE = "none"  # object-style macro: -define(M, Body).
PREDEFINED = "predefined"  # compiler built-in, never translated

Arity = Union[int, str]


@dataclass(frozen=True)
class MacroDef:
    params: tuple[str, ...]
    body: tuple[Token, ...]
    line: int = 0


# Per-arity definitions in definition order
MacroDefs = dict[Arity, MacroDef]

# name -> definitions, None marking an undefined (-undef) macro
MacroTable = dict[str, Optional[MacroDefs]]
