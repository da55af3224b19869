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
def SYSTEM_GROUND_TRANSPORT() -> Rule:
    return Rule(
        id="SYS-GROUND-TRANSPORT",
        name="Taxi and bus fares",
        description="Taxi receipts and bus tickets are travel expenses.",
        priority=30,
        conditions=[
            Condition(
                field=FieldId.RECEIPT_TYPE,
                operator=Operator.IN_LIST,
                value=f"{ReceiptType.TAXI_RECEIPT.value}, {ReceiptType.BUS_TICKET.value}",
                logical_operator=LogicalOperator.OR,
            ),
            Condition(field=FieldId.SELLER_NAME, operator=Operator.REGEX, value="出租|客运|Taxi|TAXI"),
        ],
        actions=[
            Action(type=ActionType.SET_CATEGORY, value=ReceiptCategory.EXPENSE.value),
            Action(type=ActionType.SET_SUB_CATEGORY, value=ExpenseSubCategory.TRAVEL.value),
            Action(type=ActionType.SET_EXPENSE_TYPE, value="市内交通"),
            Action(type=ActionType.ADD_TAG, value="travel, ground-transport"),
        ],
    )


@register_system_rule
def SYSTEM_TRAIN_AND_FLIGHT() -> Rule:
    return Rule(
        id="SYS-TRAIN-AND-FLIGHT",
        name="Train tickets and flight itineraries",
        description="Long-distance tickets are travel expenses and get an archive number.",
        priority=30,
        conditions=[
            Condition(
                field=FieldId.RECEIPT_TYPE,
                operator=Operator.IN_LIST,
                value=f"{ReceiptType.TRAIN_TICKET.value}, {ReceiptType.FLIGHT_ITINERARY.value}",
            ),
        ],
        actions=[
            Action(type=ActionType.SET_CATEGORY, value=ReceiptCategory.EXPENSE.value),
            Action(type=ActionType.SET_SUB_CATEGORY, value=ExpenseSubCategory.TRAVEL.value),
            Action(type=ActionType.SET_EXPENSE_TYPE, value="差旅费"),
            Action(type=ActionType.ADD_TAG, value="travel"),
            Action(type=ActionType.GENERATE_ARCHIVE_NUMBER),
        ],
    )
