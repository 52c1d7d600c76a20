"""Translate foreign record declarations into native defrecord forms.

    -record(point, {x, y = 0}).   ->   (defrecord point x (y 0))

Only record declarations produce output. Functions, type declarations and
other attributes are dropped; error forms are dropped with a warning.
"""

from __future__ import annotations

import logging
from typing import Optional

from zinc import SExpression
from zinc.diagnostics import Diagnostic, WARNING, report
from zinc.errors import ZincError, ZincRecordTranslationError, format_error
from zinc.foreign.forms import (
    AttributeForm, ErrorForm, Form, FunctionDecl, RecordDecl, RecordField, TypeDecl,
)
from zinc.translate.expr import from_expr, from_lit
from zinc.types.symbol import DEFRECORD

logger = logging.getLogger(__name__)


def trans_forms(
    forms: list[Form],
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> list[SExpression]:
    """Translate the record declarations in `forms`, keeping their order."""
    result = []
    for form in forms:
        if isinstance(form, RecordDecl):
            record = trans_record(form, diagnostics, strict)
            if record is not None:
                result.append(record)
        elif isinstance(form, ErrorForm):
            report(logger, diagnostics, WARNING, form.message, form.line)
        elif isinstance(form, (FunctionDecl, TypeDecl, AttributeForm)):
            continue
        else:
            raise TypeError(f"unknown structural form {form!r}")
    return result


def trans_record(
    record: RecordDecl,
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> Optional[SExpression]:
    try:
        fields = [record_field(f) for f in record.fields]
    except ZincError as e:
        err = ZincRecordTranslationError(record.name, str(e))
        if strict:
            raise err from e
        report(logger, diagnostics, WARNING, format_error(err), record.line, record.name)
        return None
    return [DEFRECORD, from_lit(record.name)] + fields


def record_field(field: RecordField) -> SExpression:
    if field.default is None:  # Just the field name
        return from_lit(field.name)
    return [from_lit(field.name), from_expr(field.default)]
