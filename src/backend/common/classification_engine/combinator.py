from __future__ import annotations

from typing import Optional, Sequence

from .context import EvaluationContext
from .models import Condition, LogicalOperator, ReceiptFields
from .predicates import evaluate


def combine(
    conditions: Sequence[Condition],
    receipt: ReceiptFields,
    ctx: Optional[EvaluationContext] = None,
) -> bool:
    """Left-fold a rule's conditions in declaration order.

    Each condition after the first is joined to the running result with the
    *previous* condition's logical operator. AND does not bind tighter than
    OR: ``a AND b OR c`` is ``(a AND b) OR c`` and ``a OR b AND c`` is
    ``(a OR b) AND c``.

    A step whose outcome is already decided is not evaluated, so a
    malformed condition in that position reports no diagnostic;
    `validate_rule` catches those when the rule is saved.
    """
    if not conditions:
        return False
    ctx = ctx or EvaluationContext()

    result = evaluate(conditions[0], receipt, ctx)
    for previous, current in zip(conditions, conditions[1:]):
        if previous.logical_operator is LogicalOperator.AND:
            # False AND x stays False for this step only; a later OR can still flip it.
            if result:
                result = evaluate(current, receipt, ctx)
        else:
            if not result:
                result = evaluate(current, receipt, ctx)
    return result
