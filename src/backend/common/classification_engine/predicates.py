"""Single-condition evaluation.

A predicate never raises for a well-formed condition. Anything it cannot
decide (missing field, unparsable number or date, bad regex) evaluates to
False; malformed values are also reported on the context's diagnostics.
"""

from __future__ import annotations

import operator as _op
import re
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .context import EvaluationContext
from .fields import MISSING, FieldValue, as_text, extract, field_kind, parse_date, parse_decimal
from .models import Condition, DiagnosticKind, FieldKind, Operator, ReceiptFields

Comparable = Union[Decimal, date]
Handler = Callable[[Condition, FieldValue, EvaluationContext], bool]


def evaluate(condition: Condition, receipt: ReceiptFields, ctx: Optional[EvaluationContext] = None) -> bool:
    ctx = ctx or EvaluationContext()
    value = extract(condition.field, receipt, ctx.config)
    if value is MISSING:
        # Unknown is not "different": negated operators stay False too.
        return False
    return _HANDLERS[condition.operator](condition, value, ctx)


def _typed_kind(condition: Condition) -> Optional[FieldKind]:
    kind = field_kind(condition.field)
    return kind if kind is not FieldKind.TEXT else None


def _coerce(raw: Any, kind: FieldKind, ctx: EvaluationContext) -> Optional[Comparable]:
    if kind is FieldKind.DATE:
        return parse_date(raw, ctx.config.date_formats)
    return parse_decimal(raw)


def _coerce_pair(
    condition: Condition,
    value: FieldValue,
    ctx: EvaluationContext,
    kind: FieldKind,
) -> Optional[Tuple[Comparable, Comparable]]:
    label = "date" if kind is FieldKind.DATE else "number"
    left = _coerce(value, kind, ctx)
    if left is None:
        ctx.report(
            DiagnosticKind.MALFORMED_PREDICATE,
            f"{condition.field.value} value {as_text(value)!r} is not a {label}",
        )
        return None
    right = _coerce(condition.value, kind, ctx)
    if right is None:
        ctx.report(
            DiagnosticKind.MALFORMED_PREDICATE,
            f"{condition.operator.value} comparison value {condition.value!r} is not a {label}",
        )
        return None
    return left, right


def _equality(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> Optional[bool]:
    kind = _typed_kind(condition)
    if kind is None:
        return as_text(value) == condition.value
    pair = _coerce_pair(condition, value, ctx, kind)
    if pair is None:
        return None
    return pair[0] == pair[1]


def _equals(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return _equality(condition, value, ctx) is True


def _not_equals(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return _equality(condition, value, ctx) is False


def _contains(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return condition.value in as_text(value)


def _not_contains(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return condition.value not in as_text(value)


def _starts_with(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return as_text(value).startswith(condition.value)


def _ends_with(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    return as_text(value).endswith(condition.value)


def _regex(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    # Compiled per call; no pattern cache outlives the evaluation.
    try:
        pattern = re.compile(condition.value)
    except re.error as exc:
        ctx.report(DiagnosticKind.MALFORMED_PREDICATE, f"invalid regex {condition.value!r}: {exc}")
        return False
    return pattern.search(as_text(value)) is not None


def _in_list(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
    items = [item.strip() for item in condition.value.split(ctx.config.in_list_separator)]
    kind = _typed_kind(condition)
    if kind is None:
        return as_text(value) in items

    left = _coerce(value, kind, ctx)
    if left is None:
        ctx.report(
            DiagnosticKind.MALFORMED_PREDICATE,
            f"{condition.field.value} value {as_text(value)!r} cannot be compared to list items",
        )
        return False
    candidates: List[Comparable] = []
    for item in items:
        parsed = _coerce(item, kind, ctx)
        if parsed is None:
            ctx.report(DiagnosticKind.MALFORMED_PREDICATE, f"IN_LIST item {item!r} ignored for {condition.field.value}")
            continue
        candidates.append(parsed)
    return left in candidates


def _ordering(compare: Callable[[Any, Any], bool]) -> Handler:
    def _handler(condition: Condition, value: FieldValue, ctx: EvaluationContext) -> bool:
        kind = FieldKind.DATE if field_kind(condition.field) is FieldKind.DATE else FieldKind.NUMBER
        pair = _coerce_pair(condition, value, ctx, kind)
        if pair is None:
            return False
        return compare(pair[0], pair[1])

    return _handler


_HANDLERS: Dict[Operator, Handler] = {
    Operator.EQUALS: _equals,
    Operator.NOT_EQUALS: _not_equals,
    Operator.CONTAINS: _contains,
    Operator.NOT_CONTAINS: _not_contains,
    Operator.GREATER_THAN: _ordering(_op.gt),
    Operator.LESS_THAN: _ordering(_op.lt),
    Operator.GREATER_EQUAL: _ordering(_op.ge),
    Operator.LESS_EQUAL: _ordering(_op.le),
    Operator.STARTS_WITH: _starts_with,
    Operator.ENDS_WITH: _ends_with,
    Operator.REGEX: _regex,
    Operator.IN_LIST: _in_list,
}

_unhandled = set(Operator) - set(_HANDLERS)
if _unhandled:  # pragma: no cover
    raise RuntimeError(f"No predicate handler for: {sorted(o.value for o in _unhandled)}")
