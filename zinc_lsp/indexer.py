"""
Indexer for foreign header buffers.

Runs the preprocessor and both translators over a buffer and records:
- the records and macros the header defines, with their positions
- the native form each one translates to (None if it does not translate)
- the diagnostics produced along the way (parse errors, dropped definitions)

Nothing is written to disk and included files are resolved relative to the
document path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from zinc import SExpression
from zinc.diagnostics import Diagnostic, WARNING
from zinc.errors import ZincError
from zinc.foreign.forms import PREDEFINED, RecordDecl
from zinc.foreign.preprocessor import Preprocessor
from zinc.reader.printer import to_source
from zinc.translate.macros import trans_macros
from zinc.translate.records import trans_forms


@dataclass
class SymbolDef:
    name: str
    kind: str  # "record" | "macro"
    line: int  # 0-based
    col: int
    native: Optional[SExpression] = None


@dataclass
class HeaderIndex:
    symbols: Dict[str, SymbolDef] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _position(lines: List[str], line: int, name: str) -> Tuple[int, int]:
    # Foreign lines are 1-based
    row = max(line - 1, 0)
    col = lines[row].find(name) if row < len(lines) else -1
    return row, max(col, 0)


def build_index(text: str, path: str | Path = "nofile", preprocessor: Optional[Preprocessor] = None) -> HeaderIndex:
    idx = HeaderIndex()
    pp = preprocessor or Preprocessor()
    try:
        with pp.open_text(text, path) as session:
            parsed = session.parse_file()
            forms = parsed.forms
            macro_defs = parsed.macro_defs()
    except ZincError as e:
        idx.diagnostics.append(Diagnostic(WARNING, str(e)))
        return idx

    lines = text.splitlines()
    records = {str(r[1]): r for r in trans_forms(forms, idx.diagnostics)}
    macros = {str(m[1]): m for m in trans_macros(macro_defs, idx.diagnostics)}

    for form in forms:
        if isinstance(form, RecordDecl):
            row, col = _position(lines, form.line, form.name)
            idx.symbols[form.name] = SymbolDef(form.name, "record", row, col, records.get(form.name))

    for name, defs in macro_defs.items():
        if not defs or PREDEFINED in defs:
            continue
        first = min(d.line for d in defs.values())
        row, col = _position(lines, first, name)
        idx.symbols[name] = SymbolDef(name, "macro", row, col, macros.get(name))
    return idx


def describe(sdef: SymbolDef) -> str:
    """One-line hover text for a record or macro."""
    if sdef.native is None:
        return f"{sdef.name}: {sdef.kind}, not translated"
    return to_source(sdef.native)
