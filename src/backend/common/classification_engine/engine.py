from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from .actions import apply_actions
from .archive_numbers import ArchiveNumberGenerator, assign_archive_number
from .config import ClassificationConfig
from .context import DiagnosticLog, EvaluationContext
from .models import Action, ActionType, ClassificationResult, ReceiptFields, Rule
from .resolver import resolve

logger = logging.getLogger(__name__)


class ClassificationEngine:
    """Classifies one receipt at a time against a caller-owned rule list.

    Holds no rule state between calls. When an archive number generator is
    supplied it is invoked once, as the last step, and only if the outcome
    requested numbering; otherwise the request stays on the directive for
    the caller.
    """

    def __init__(
        self,
        *,
        config: Optional[ClassificationConfig] = None,
        archive_numbers: Optional[ArchiveNumberGenerator] = None,
    ):
        self.config = config or ClassificationConfig()
        self._archive_numbers = archive_numbers

    def classify(
        self,
        rules: Iterable[Rule],
        receipt: ReceiptFields,
        *,
        as_of: Optional[date] = None,
    ) -> ClassificationResult:
        diagnostics = DiagnosticLog()
        ctx = EvaluationContext(config=self.config, diagnostics=diagnostics)

        rule = resolve(rules, receipt, ctx)
        if rule is None:
            return self._unmatched(receipt, ctx, as_of)

        directive = apply_actions(rule.actions, receipt, ctx.for_rule(rule.id), as_of=as_of)
        if self._archive_numbers is not None:
            directive = assign_archive_number(directive, self._archive_numbers)
        diagnostics.extend(directive.diagnostics)

        return ClassificationResult(
            receipt_id=receipt.receipt_id,
            matched=True,
            rule_id=rule.id,
            rule_name=rule.name,
            directive=directive,
            diagnostics=diagnostics.items,
        )

    def _unmatched(
        self,
        receipt: ReceiptFields,
        ctx: EvaluationContext,
        as_of: Optional[date],
    ) -> ClassificationResult:
        defaults = []
        if self.config.unmatched_category is not None:
            defaults.append(Action(type=ActionType.SET_CATEGORY, value=self.config.unmatched_category.value))
        if self.config.unmatched_generate_archive_number:
            defaults.append(Action(type=ActionType.GENERATE_ARCHIVE_NUMBER))

        directive = None
        if defaults:
            directive = apply_actions(defaults, receipt, ctx, as_of=as_of)
            if self._archive_numbers is not None:
                directive = assign_archive_number(directive, self._archive_numbers)
            logger.info("receipt %s unmatched; applied default classification", receipt.receipt_id)

        return ClassificationResult(
            receipt_id=receipt.receipt_id,
            matched=False,
            directive=directive,
            diagnostics=ctx.diagnostics.items,
        )
