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
def SYSTEM_DINING() -> Rule:
    return Rule(
        id="SYS-DINING",
        name="Dining",
        description="Restaurant and catering receipts; large bills are treated as business entertainment by a user rule.",
        priority=20,
        conditions=[
            Condition(
                field=FieldId.RECEIPT_TYPE,
                operator=Operator.EQUALS,
                value=ReceiptType.DINING_INVOICE.value,
                logical_operator=LogicalOperator.OR,
            ),
            Condition(field=FieldId.SELLER_NAME, operator=Operator.REGEX, value="餐饮|餐厅|饭店|Restaurant"),
        ],
        actions=[
            Action(type=ActionType.SET_CATEGORY, value=ReceiptCategory.EXPENSE.value),
            Action(type=ActionType.SET_SUB_CATEGORY, value=ExpenseSubCategory.MEAL.value),
            Action(type=ActionType.SET_EXPENSE_TYPE, value="餐费"),
            Action(type=ActionType.ADD_TAG, value="meal"),
        ],
    )
