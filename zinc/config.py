from __future__ import annotations
import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Defaults
_DEFAULT_LIB_DIRS: List[Path] = []
_DEFAULT_INCLUDE_DIRS: List[Path] = []
_DEFAULT_HEADER_SUFFIXES = ('.hrl',)

# name-1.2.3 style versioned library directories
_VERSIONED_DIR_RE = re.compile(r"^(?P<name>.+?)-(?P<vsn>\d[\w.]*)$")


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    sep = _sep()
    return [Path(p.strip()) for p in raw.split(sep) if p.strip()]


def get_lib_roots() -> List[Path]:
    return paths_from_env('ZINC_LIB_PATH', _DEFAULT_LIB_DIRS)


def get_include_dirs() -> List[Path]:
    return paths_from_env('ZINC_INCLUDE_PATH', _DEFAULT_INCLUDE_DIRS)


def get_header_suffixes() -> Tuple[str, ...]:
    raw = os.environ.get('ZINC_HEADER_SUFFIXES')
    if not raw:
        return _DEFAULT_HEADER_SUFFIXES
    return tuple(s.strip() for s in raw.split(',') if s.strip())


def is_header(name: str) -> bool:
    return name.endswith(get_header_suffixes())


def _version_key(vsn: str) -> list:
    return [(0, int(p), "") if p.isdigit() else (1, 0, p) for p in re.split(r"[.\-]", vsn)]


def find_lib_dir(name: str) -> Optional[Path]:
    """Installation directory of library `name` under ZINC_LIB_PATH, or None.

    An exact `<root>/<name>` directory wins, otherwise the highest versioned
    `<root>/<name>-<vsn>` directory of the first root that has one.
    """
    for root in get_lib_roots():
        exact = root / name
        if exact.is_dir():
            return exact
        if not root.is_dir():
            continue
        versioned = []
        for child in root.iterdir():
            m = _VERSIONED_DIR_RE.match(child.name)
            if m and m.group('name') == name and child.is_dir():
                versioned.append((_version_key(m.group('vsn')), child))
        if versioned:
            versioned.sort(key=lambda kv: kv[0])
            return versioned[-1][1]
    return None
