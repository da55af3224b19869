from __future__ import annotations

from ..models import (
    Action,
    ActionType,
    Condition,
    ExpenseSubCategory,
    FieldId,
    LogicalOperator,
    Operator,
    ReceiptCategory,
    ReceiptType,
    Rule,
)
from ..registry import register_system_rule


@register_system_rule
def SYSTEM_LODGING() -> Rule:
    return Rule(
        id="SYS-LODGING",
        name="Hotel and accommodation",
        priority=25,
        conditions=[
            Condition(
                field=FieldId.RECEIPT_TYPE,
                operator=Operator.EQUALS,
                value=ReceiptType.ACCOMMODATION_INVOICE.value,
                logical_operator=LogicalOperator.OR,
            ),
            Condition(field=FieldId.SELLER_NAME, operator=Operator.REGEX, value="酒店|宾馆|Hotel|Inn"),
        ],
        actions=[
            Action(type=ActionType.SET_CATEGORY, value=ReceiptCategory.EXPENSE.value),
            Action(type=ActionType.SET_SUB_CATEGORY, value=ExpenseSubCategory.TRAVEL.value),
            Action(type=ActionType.SET_EXPENSE_TYPE, value="住宿费"),
            Action(type=ActionType.ADD_TAG, value="travel, lodging"),
        ],
    )
