"""The include-file and include-lib macros.

    (include-file "name")   ->  (progn form ...)
    (include-lib "name")    ->  (progn form ...)

Files ending in a header suffix (`.hrl` by default) are foreign headers:
their record and macro definitions are translated to native `defrecord` and
`defmacro` forms. Any other file is read as native source. include-lib first
tries the name as a path and otherwise takes the first path segment as a
library name, resolved to the library's root directory.

Errors in the request (bad argument, unreadable file, unknown library) are
raised. Records and macro definitions that cannot be translated are left out
and reported, unless the includer is strict.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from zinc import SExpression
from zinc.config import find_lib_dir, is_header
from zinc.diagnostics import Diagnostic
from zinc.errors import ZincBadArgument, ZincReadError
from zinc.foreign.forms import Form, MacroTable
from zinc.foreign.preprocessor import Preprocessor
from zinc.reader.parser import read_file as read_native
from zinc.translate.macros import trans_macros
from zinc.translate.records import trans_forms
from zinc.types.state import ExpanderState
from zinc.types.symbol import PROGN

logger = logging.getLogger(__name__)

LibResolver = Callable[[str], Optional[Path]]
NativeReader = Callable[[Path], list]


class IncludeResult(NamedTuple):
    form: SExpression
    state: ExpanderState


def include_name(body: list[SExpression]) -> str:
    """The file name argument of an include-XXX body."""
    if isinstance(body, list) and len(body) == 1 and isinstance(body[0], str):
        return body[0]
    raise ZincBadArgument(f"include expects one file name string, got {body!r}")


def parse_hrl_file(
    forms: list[Form],
    macro_defs: MacroTable,
    state: ExpanderState,
    diagnostics: Optional[list[Diagnostic]] = None,
    strict: bool = False,
) -> tuple[list[SExpression], ExpanderState]:
    """Records first, in declaration order, then macros in table order."""
    records = trans_forms(forms, diagnostics, strict)
    macros = trans_macros(macro_defs, diagnostics, strict)
    return records + macros, state


class Includer:
    """Implements include-file and include-lib.

    lib_dir: library name -> installation root, or None when unknown.
    preprocessor: opens foreign header sessions.
    native_reader: reads a native source file into forms.
    strict: raise on untranslatable records and macros instead of dropping them.
    diagnostics: if given, collects the definition-level problems.
    """

    def __init__(
        self,
        lib_dir: LibResolver = find_lib_dir,
        preprocessor: Optional[Preprocessor] = None,
        native_reader: NativeReader = read_native,
        strict: bool = False,
        diagnostics: Optional[list[Diagnostic]] = None,
    ):
        self.lib_dir = lib_dir
        self.preprocessor = preprocessor or Preprocessor(lib_dir=lib_dir)
        self.native_reader = native_reader
        self.strict = strict
        self.diagnostics = diagnostics

    def file(self, body: list[SExpression], env, state: ExpanderState) -> IncludeResult:
        """Expand (include-file ...)."""
        name = include_name(body)
        forms, state = self.read_file(name, state)
        return IncludeResult([PROGN] + forms, state)

    def lib(self, body: list[SExpression], env, state: ExpanderState) -> IncludeResult:
        """Expand (include-lib ...): the name as given, else relative to its library."""
        name = include_name(body)
        try:
            forms, new_state = self.read_file(name, state)
        except ZincReadError as e:
            logger.debug("include-lib %s: %s, trying as library path", name, e)
            forms, new_state = self.read_file(self.lib_file_name(name), state)
        return IncludeResult([PROGN] + forms, new_state)

    def lib_file_name(self, lpath: str | Path) -> Path:
        """Path to the true library file: first segment replaced by the library root."""
        parts = Path(lpath).parts
        if not parts:
            raise ZincBadArgument("empty library path")
        lname, rest = parts[0], parts[1:]
        root = self.lib_dir(lname)
        if root is None:
            raise ZincBadArgument(f"unknown library {lname!r}")
        return Path(root, *rest)

    def read_file(self, name: str | Path, state: ExpanderState) -> tuple[list[SExpression], ExpanderState]:
        if is_header(str(name)):
            forms, state = self.read_hrl_file(Path(name), state)
        else:
            forms, state = self.read_native_file(Path(name), state)
        return forms, state.with_included(Path(name))

    def read_native_file(self, path: Path, state: ExpanderState) -> tuple[list[SExpression], ExpanderState]:
        return self.native_reader(path), state

    def read_hrl_file(self, path: Path, state: ExpanderState) -> tuple[list[SExpression], ExpanderState]:
        with self.preprocessor.open(path) as session:
            parsed = session.parse_file()  # This must be called first
            forms = parsed.forms
            macro_defs = parsed.macro_defs()  # then this
        return parse_hrl_file(forms, macro_defs, state, self.diagnostics, self.strict)


def include_file(body: list[SExpression], env, state: ExpanderState) -> IncludeResult:
    return Includer().file(body, env, state)


def include_lib(body: list[SExpression], env, state: ExpanderState) -> IncludeResult:
    return Includer().lib(body, env, state)
