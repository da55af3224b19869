from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional

from .config import ClassificationConfig
from .models import Diagnostic, DiagnosticKind

logger = logging.getLogger(__name__)


class DiagnosticLog:
    """Collects non-fatal problems found during one evaluation call."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def report(self, kind: DiagnosticKind, message: str, *, rule_id: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(rule_id=rule_id, kind=kind, message=message)
        self._items.append(diagnostic)
        logger.warning("%s (rule %s): %s", kind.value, rule_id or "-", message)
        return diagnostic

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        self._items.extend(diagnostics)

    @property
    def items(self) -> List[Diagnostic]:
        return list(self._items)

    def pairs(self) -> List[tuple[Optional[str], str]]:
        return [d.as_pair() for d in self._items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


@dataclass(frozen=True)
class EvaluationContext:
    config: ClassificationConfig = field(default_factory=ClassificationConfig)
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)
    rule_id: Optional[str] = None

    def for_rule(self, rule_id: Optional[str]) -> "EvaluationContext":
        return replace(self, rule_id=rule_id)

    def report(self, kind: DiagnosticKind, message: str) -> Diagnostic:
        return self.diagnostics.report(kind, message, rule_id=self.rule_id)
