from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from zinc import SExpression
from zinc.types.symbol import Symbol


@dataclass
class ExpanderState:
    """State threaded through the expansion of one program.

    records: defrecord forms seen so far, by record name.
    included: files included so far, in inclusion order.
    """
    records: dict[Symbol, SExpression] = field(default_factory=dict)
    included: tuple[Path, ...] = ()

    def with_included(self, path: Path) -> ExpanderState:
        return replace(self, included=self.included + (Path(path),))

    def with_record(self, name: Symbol, form: SExpression) -> ExpanderState:
        return replace(self, records={**self.records, name: form})
