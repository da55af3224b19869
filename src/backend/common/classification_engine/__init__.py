"""Receipt auto-classification rule engine.

This package intentionally contains only decision logic:
- Inputs are a receipt's extracted field bag and a caller-owned rule list.
- Output is a mutation directive plus diagnostics; nothing here touches
  receipt storage, OCR, or the archive itself.
"""

from .actions import apply_actions
from .archive_numbers import ArchiveNumberGenerator, InMemoryArchiveNumberGenerator, assign_archive_number
from .combinator import combine
from .config import ClassificationConfig
from .context import DiagnosticLog, EvaluationContext
from .engine import ClassificationEngine
from .fields import MISSING, extract
from .models import (
    Action,
    ActionType,
    ClassificationResult,
    ClassificationRunReport,
    Condition,
    Diagnostic,
    FieldId,
    LogicalOperator,
    MutationDirective,
    Operator,
    ReceiptFields,
    Rule,
)
from .predicates import evaluate
from .resolver import order_rules, resolve
from .runner import ClassificationRunner
from .store import RuleStore

# Import built-in system rules so they self-register with the global registry.
from . import system_rules as _system_rules  # noqa: F401
