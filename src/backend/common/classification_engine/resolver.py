from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .combinator import combine
from .context import EvaluationContext
from .fields import FIELD_KINDS
from .models import DiagnosticKind, ReceiptFields, Rule
from .validation import is_operator_supported

logger = logging.getLogger(__name__)


def order_rules(rules: Iterable[Rule]) -> List[Rule]:
    """Evaluation order: priority descending, then insertion sequence, then list position."""
    indexed = list(enumerate(rules))
    indexed.sort(key=lambda item: (-item[1].priority, item[1].sequence, item[0]))
    return [rule for _, rule in indexed]


def malformed_reason(rule: Rule) -> Optional[str]:
    if not rule.conditions:
        return "rule has no conditions and can never match"
    for index, condition in enumerate(rule.conditions, 1):
        if not is_operator_supported(condition.field, condition.operator):
            return (
                f"condition {index}: operator {condition.operator.value} is not supported on "
                f"{FIELD_KINDS[condition.field].value} field {condition.field.value}"
            )
    return None


def resolve(
    rules: Iterable[Rule],
    receipt: ReceiptFields,
    ctx: Optional[EvaluationContext] = None,
) -> Optional[Rule]:
    """Return the first enabled rule (in evaluation order) whose conditions match.

    First match wins. Malformed rules are skipped and reported so that one
    bad rule never blocks the rest of the pass. Returns None when nothing
    matches.
    """
    ctx = ctx or EvaluationContext()
    for rule in order_rules(r for r in rules if r.enabled):
        rule_ctx = ctx.for_rule(rule.id)
        reason = malformed_reason(rule)
        if reason is not None:
            rule_ctx.report(DiagnosticKind.MALFORMED_RULE, f"skipped '{rule.name}': {reason}")
            continue
        if combine(rule.conditions, receipt, rule_ctx):
            logger.debug("receipt %s matched rule %s (%s)", receipt.receipt_id, rule.id, rule.name)
            return rule
    logger.debug("receipt %s matched no rule", receipt.receipt_id)
    return None
