from __future__ import annotations

from ..models import Action, ActionType, Condition, FieldId, Operator, ReceiptCategory, Rule
from ..registry import register_system_rule


@register_system_rule
def SYSTEM_VAT_INVOICES() -> Rule:
    # Lowest of the system rules: anything more specific above wins first.
    return Rule(
        id="SYS-VAT-INVOICES",
        name="VAT invoices",
        description="Remaining VAT invoices are filed as expenses and numbered for the archive.",
        priority=5,
        conditions=[
            Condition(field=FieldId.RECEIPT_TYPE, operator=Operator.STARTS_WITH, value="VAT_"),
        ],
        actions=[
            Action(type=ActionType.SET_CATEGORY, value=ReceiptCategory.EXPENSE.value),
            Action(type=ActionType.ADD_TAG, value="invoice"),
            Action(type=ActionType.ARCHIVE, value="invoices"),
            Action(type=ActionType.GENERATE_ARCHIVE_NUMBER),
        ],
    )
