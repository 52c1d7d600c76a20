"""Translate a header (or include a native file) and print the resulting forms.

    python -m zinc include/point.hrl
    python -m zinc --lib mylib/include/defs.hrl
"""

from __future__ import annotations

import argparse
import logging
import sys

from zinc.config import get_include_dirs
from zinc.diagnostics import Diagnostic
from zinc.errors import ZincError, format_error
from zinc.foreign.preprocessor import Preprocessor
from zinc.include import Includer
from zinc.reader.printer import pformat
from zinc.types.state import ExpanderState
from zinc.types.symbol import PROGN, is_form


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="zinc", description=__doc__.splitlines()[0])
    parser.add_argument("name", help="file to include")
    parser.add_argument("--lib", action="store_true", help="resolve like include-lib")
    parser.add_argument("--strict", action="store_true",
                        help="fail on records and macros that cannot be translated")
    parser.add_argument("-I", dest="include_path", action="append", default=None,
                        metavar="DIR", help="add DIR to the -include search path")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    diagnostics: list[Diagnostic] = []
    includer = Includer(strict=args.strict, diagnostics=diagnostics)
    if args.include_path is not None:
        includer.preprocessor = Preprocessor(
            include_path=args.include_path + get_include_dirs(), lib_dir=includer.lib_dir
        )
    expand = includer.lib if args.lib else includer.file
    try:
        result = expand([args.name], None, ExpanderState())
    except ZincError as e:
        print(f"zinc: {format_error(e)}", file=sys.stderr)
        return 1
    forms = result.form[1:] if is_form(result.form, PROGN) else [result.form]
    for form in forms:
        print(pformat(form))
    return 0


if __name__ == "__main__":
    sys.exit(main())
