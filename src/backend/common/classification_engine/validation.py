from __future__ import annotations

import re
from typing import Dict, FrozenSet, List, Optional

from .archive_numbers import category_code_for
from .config import ClassificationConfig
from .errors import RuleValidationError
from .fields import FIELD_KINDS, parse_date, parse_decimal
from .models import (
    Action,
    ActionType,
    Condition,
    ExpenseSubCategory,
    FieldId,
    FieldKind,
    Operator,
    ReceiptCategory,
    Rule,
)

ORDERING_OPERATORS: FrozenSet[Operator] = frozenset(
    {
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
        Operator.GREATER_EQUAL,
        Operator.LESS_EQUAL,
    }
)

OPERATORS_BY_KIND: Dict[FieldKind, FrozenSet[Operator]] = {
    FieldKind.TEXT: frozenset(
        {
            Operator.EQUALS,
            Operator.NOT_EQUALS,
            Operator.CONTAINS,
            Operator.NOT_CONTAINS,
            Operator.STARTS_WITH,
            Operator.ENDS_WITH,
            Operator.REGEX,
            Operator.IN_LIST,
        }
    ),
    FieldKind.NUMBER: frozenset({Operator.EQUALS, Operator.NOT_EQUALS, Operator.IN_LIST}) | ORDERING_OPERATORS,
    FieldKind.DATE: frozenset({Operator.EQUALS, Operator.NOT_EQUALS, Operator.IN_LIST}) | ORDERING_OPERATORS,
}

SINGLE_VALUED_ACTIONS: FrozenSet[ActionType] = frozenset(
    {
        ActionType.SET_CATEGORY,
        ActionType.SET_SUB_CATEGORY,
        ActionType.SET_EXPENSE_TYPE,
        ActionType.SET_DEPARTMENT,
        ActionType.SET_PROJECT,
    }
)


def is_operator_supported(field: FieldId, operator: Operator) -> bool:
    return operator in OPERATORS_BY_KIND[FIELD_KINDS[field]]


def validate_condition(condition: Condition, config: Optional[ClassificationConfig] = None) -> List[str]:
    cfg = config or ClassificationConfig()
    field = condition.field.value
    op = condition.operator.value
    if not is_operator_supported(condition.field, condition.operator):
        return [f"operator {op} is not supported on {FIELD_KINDS[condition.field].value} field {field}"]

    kind = FIELD_KINDS[condition.field]
    problems: List[str] = []
    if condition.operator is Operator.REGEX:
        try:
            re.compile(condition.value)
        except re.error as exc:
            problems.append(f"invalid regex for {field}: {exc}")
    elif condition.operator is Operator.IN_LIST:
        items = [item.strip() for item in condition.value.split(cfg.in_list_separator)]
        if not any(items):
            problems.append(f"IN_LIST on {field} has no values")
    elif kind is FieldKind.NUMBER and parse_decimal(condition.value) is None:
        problems.append(f"{op} on {field} needs a numeric value, got {condition.value!r}")
    elif kind is FieldKind.DATE and parse_date(condition.value, cfg.date_formats) is None:
        problems.append(f"{op} on {field} needs a date value, got {condition.value!r}")
    return problems


def validate_action(action: Action) -> Optional[str]:
    value = action.value.strip()
    if action.type is ActionType.SET_CATEGORY and value not in ReceiptCategory.__members__:
        return f"unknown category {action.value!r}"
    if action.type is ActionType.SET_SUB_CATEGORY and value not in ExpenseSubCategory.__members__:
        return f"unknown sub-category {action.value!r}"
    if action.type in SINGLE_VALUED_ACTIONS and not value:
        return f"{action.type.value} needs a value"
    if action.type is ActionType.ADD_TAG and not any(t.strip() for t in action.value.split(",")):
        return "ADD_TAG needs at least one tag"
    if action.type is ActionType.GENERATE_ARCHIVE_NUMBER and value and category_code_for(value) is None:
        return f"invalid archive category code {action.value!r}"
    return None


def validate_rule(rule: Rule, config: Optional[ClassificationConfig] = None) -> List[str]:
    problems: List[str] = []
    if not rule.name.strip():
        problems.append("rule name is empty")
    if not rule.conditions:
        problems.append("rule has no conditions")
    for index, condition in enumerate(rule.conditions, 1):
        problems.extend(f"condition {index}: {p}" for p in validate_condition(condition, config))
    if not rule.actions:
        problems.append("rule has no actions")
    for index, action in enumerate(rule.actions, 1):
        problem = validate_action(action)
        if problem:
            problems.append(f"action {index}: {problem}")
    return problems


def ensure_valid_rule(rule: Rule, config: Optional[ClassificationConfig] = None) -> Rule:
    problems = validate_rule(rule, config)
    if problems:
        raise RuleValidationError(rule.name, problems)
    return rule
