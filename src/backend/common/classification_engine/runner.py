from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from .engine import ClassificationEngine
from .models import ClassificationResult, ClassificationRunReport, ReceiptFields, Rule

logger = logging.getLogger(__name__)


class ClassificationRunner:
    """Batch classification over one snapshot of the enabled rules.

    The snapshot is taken at construction, so rule edits made while a batch
    is running are not seen by that batch.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        *,
        engine: Optional[ClassificationEngine] = None,
        max_workers: int = 1,
    ):
        self._rules = tuple(rule.model_copy(deep=True) for rule in rules if rule.enabled)
        self._engine = engine or ClassificationEngine()
        self._max_workers = max(1, max_workers)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def classify(self, receipt: ReceiptFields, *, as_of: Optional[date] = None) -> ClassificationResult:
        return self._engine.classify(self._rules, receipt, as_of=as_of)

    def run(self, receipts: Iterable[ReceiptFields], *, as_of: Optional[date] = None) -> ClassificationRunReport:
        batch = list(receipts)
        logger.info("classifying %d receipts against %d rules", len(batch), len(self._rules))

        if self._max_workers > 1 and len(batch) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                results = list(pool.map(lambda r: self.classify(r, as_of=as_of), batch))
        else:
            results = [self.classify(r, as_of=as_of) for r in batch]

        totals: dict[str, int] = {"matched": 0, "unmatched": 0}
        by_rule: dict[str, int] = {}
        for res in results:
            totals["matched" if res.matched else "unmatched"] += 1
            if res.rule_id is not None:
                by_rule[res.rule_id] = by_rule.get(res.rule_id, 0) + 1

        return ClassificationRunReport(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            rule_count=len(self._rules),
            results=results,
            totals=totals,
            by_rule=by_rule,
            diagnostic_count=sum(len(res.diagnostics) for res in results),
        )
