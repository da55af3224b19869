from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, Optional, Sequence, Set

from .archive_numbers import category_code_for, period_key_for
from .context import DiagnosticLog, EvaluationContext
from .fields import MISSING, extract
from .models import (
    Action,
    ActionType,
    ArchiveNumberRequest,
    ArchiveRequest,
    DiagnosticKind,
    ExpenseSubCategory,
    FieldId,
    MutationDirective,
    ReceiptCategory,
    ReceiptFields,
)
from .validation import validate_action


@dataclass
class _Fold:
    directive: MutationDirective
    tags: Set[str] = field(default_factory=set)
    number_requested: bool = False
    category_code: Optional[str] = None


def _set_category(fold: _Fold, value: str) -> None:
    fold.directive.category = ReceiptCategory[value]


def _set_sub_category(fold: _Fold, value: str) -> None:
    fold.directive.sub_category = ExpenseSubCategory[value]


def _set_expense_type(fold: _Fold, value: str) -> None:
    fold.directive.expense_type = value


def _set_department(fold: _Fold, value: str) -> None:
    fold.directive.department = value


def _set_project(fold: _Fold, value: str) -> None:
    fold.directive.project = value


def _add_tag(fold: _Fold, value: str) -> None:
    fold.tags.update(tag.strip() for tag in value.split(",") if tag.strip())


def _archive(fold: _Fold, value: str) -> None:
    fold.directive.archive = ArchiveRequest(path=value or None)


def _generate_archive_number(fold: _Fold, value: str) -> None:
    fold.number_requested = True
    if value:
        fold.category_code = category_code_for(value)


_APPLIERS: Dict[ActionType, Callable[[_Fold, str], None]] = {
    ActionType.SET_CATEGORY: _set_category,
    ActionType.SET_SUB_CATEGORY: _set_sub_category,
    ActionType.SET_EXPENSE_TYPE: _set_expense_type,
    ActionType.SET_DEPARTMENT: _set_department,
    ActionType.SET_PROJECT: _set_project,
    ActionType.ADD_TAG: _add_tag,
    ActionType.ARCHIVE: _archive,
    ActionType.GENERATE_ARCHIVE_NUMBER: _generate_archive_number,
}

_unhandled = set(ActionType) - set(_APPLIERS)
if _unhandled:  # pragma: no cover
    raise RuntimeError(f"No action applier for: {sorted(a.value for a in _unhandled)}")


def apply_actions(
    actions: Sequence[Action],
    receipt: Optional[ReceiptFields] = None,
    ctx: Optional[EvaluationContext] = None,
    *,
    base: Optional[MutationDirective] = None,
    as_of: Optional[date] = None,
) -> MutationDirective:
    """Fold a rule's actions into one mutation directive.

    Single-valued fields are last-writer-wins; tags are a set union.
    ARCHIVE and GENERATE_ARCHIVE_NUMBER only produce requests for the caller,
    the receipt is never touched. Invalid action values are reported on the
    directive and skipped. Folding the same actions onto the result again
    (``base=``) yields an identical directive.
    """
    ctx = ctx or EvaluationContext()
    local = replace(ctx, diagnostics=DiagnosticLog())

    directive = base.model_copy(deep=True) if base is not None else MutationDirective(rule_id=ctx.rule_id)
    fold = _Fold(directive=directive, tags=set(directive.tags))

    for action in actions:
        problem = validate_action(action)
        if problem:
            local.report(DiagnosticKind.MALFORMED_ACTION, f"{action.type.value} not applied: {problem}")
            continue
        _APPLIERS[action.type](fold, action.value.strip())

    directive.tags = sorted(fold.tags)
    if fold.number_requested:
        directive.archive_number_request = _archive_number_request(fold, receipt, local, as_of)

    for diagnostic in local.diagnostics:
        if diagnostic not in directive.diagnostics:
            directive.diagnostics.append(diagnostic)
    return directive


def _archive_number_request(
    fold: _Fold,
    receipt: Optional[ReceiptFields],
    ctx: EvaluationContext,
    as_of: Optional[date],
) -> ArchiveNumberRequest:
    day = None
    if receipt is not None:
        value = extract(FieldId.DATE, receipt, ctx.config)
        if isinstance(value, date):
            day = value
        elif value is not MISSING:
            ctx.report(
                DiagnosticKind.MALFORMED_ACTION,
                f"GENERATE_ARCHIVE_NUMBER: DATE value {value!r} is not a date; "
                f"period taken from {'as_of' if as_of else 'today'}",
            )
    day = day or as_of or date.today()

    code = fold.category_code
    if code is None and fold.directive.category is not None:
        code = fold.directive.category.archive_code
    return ArchiveNumberRequest(
        period_key=period_key_for(day),
        category_code=code or ctx.config.default_category_code,
    )
