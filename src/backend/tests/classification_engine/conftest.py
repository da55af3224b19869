import os
import sys


BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from common.classification_engine.context import EvaluationContext
from common.classification_engine.models import (
    Action,
    ActionType,
    Condition,
    FieldId,
    LogicalOperator,
    Operator,
    ReceiptFields,
    Rule,
)


@pytest.fixture
def make_receipt():
    def _make(receipt_id: str = "r-1", **values) -> ReceiptFields:
        return ReceiptFields(receipt_id=receipt_id, values=values)

    return _make


@pytest.fixture
def cond():
    def _make(field: str, operator: str, value: str = "", joiner: str = "AND") -> Condition:
        return Condition(
            field=FieldId(field),
            operator=Operator(operator),
            value=value,
            logical_operator=LogicalOperator(joiner),
        )

    return _make


@pytest.fixture
def action():
    def _make(action_type: str, value: str = "") -> Action:
        return Action(type=ActionType(action_type), value=value)

    return _make


@pytest.fixture
def make_rule():
    def _make(
        name: str,
        *,
        conditions,
        actions=None,
        priority: int = 0,
        sequence: int = 0,
        enabled: bool = True,
        rule_id: str | None = None,
    ) -> Rule:
        return Rule(
            id=rule_id or name.upper().replace(" ", "-"),
            name=name,
            priority=priority,
            sequence=sequence,
            enabled=enabled,
            conditions=list(conditions),
            actions=list(actions or [Action(type=ActionType.ADD_TAG, value=name.lower())]),
        )

    return _make


@pytest.fixture
def ctx() -> EvaluationContext:
    return EvaluationContext()
