from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import ClassificationConfig
from .errors import RuleNotFoundError, SystemRuleError
from .models import ActionType, ReceiptCategory, Rule
from .resolver import order_rules
from .validation import ensure_valid_rule

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


class RuleStore:
    """In-memory rule store with JSON persistence.

    Stands in for the application's rule table: assigns ids and insertion
    sequence numbers, validates rules when they are authored, protects system
    rules from deletion, and keeps priorities collision-free on reorder.
    """

    def __init__(self, *, config: Optional[ClassificationConfig] = None):
        self._config = config or ClassificationConfig()
        self._rules: Dict[str, Rule] = {}
        self._next_sequence = 1

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def add(self, rule: Rule) -> Rule:
        ensure_valid_rule(rule, self._config)
        rule_id = rule.id or uuid.uuid4().hex
        if rule_id in self._rules:
            raise ValueError(f"Duplicate rule id: {rule_id}")
        now = datetime.now(timezone.utc)
        stored = rule.model_copy(
            deep=True,
            update={"id": rule_id, "sequence": self._next_sequence, "created_at": now, "updated_at": now},
        )
        self._next_sequence += 1
        self._rules[rule_id] = stored
        logger.info("added rule %s (%s) priority=%d", rule_id, stored.name, stored.priority)
        return stored.model_copy(deep=True)

    def update(self, rule: Rule) -> Rule:
        current = self._require(rule.id)
        ensure_valid_rule(rule, self._config)
        stored = rule.model_copy(
            deep=True,
            update={
                "sequence": current.sequence,
                "created_at": current.created_at,
                "is_system_rule": current.is_system_rule,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        self._rules[rule.id] = stored
        return stored.model_copy(deep=True)

    def delete(self, rule_id: str) -> None:
        rule = self._require(rule_id)
        if rule.is_system_rule:
            raise SystemRuleError(f"System rule '{rule.name}' cannot be deleted; disable it instead.")
        del self._rules[rule_id]
        logger.info("deleted rule %s (%s)", rule_id, rule.name)

    def get(self, rule_id: str) -> Rule:
        return self._require(rule_id).model_copy(deep=True)

    def rules(self) -> List[Rule]:
        return [rule.model_copy(deep=True) for rule in order_rules(self._rules.values())]

    def enabled_snapshot(self) -> tuple[Rule, ...]:
        """Deep copies of the enabled rules, in evaluation order, for one batch."""
        return tuple(rule for rule in self.rules() if rule.enabled)

    def set_enabled(self, rule_id: str, enabled: bool) -> Rule:
        rule = self._require(rule_id)
        rule.enabled = enabled
        rule.updated_at = datetime.now(timezone.utc)
        return rule.model_copy(deep=True)

    def toggle(self, rule_id: str) -> Rule:
        return self.set_enabled(rule_id, not self._require(rule_id).enabled)

    def reorder(self, rule_ids: List[str]) -> List[Rule]:
        """Make `rule_ids` the evaluation order; the first id is evaluated first.

        Every stored rule must be listed exactly once. Priorities are
        renumbered ``n-1 .. 0`` so no two rules share a priority afterwards.
        """
        if sorted(rule_ids) != sorted(self._rules) or len(set(rule_ids)) != len(rule_ids):
            raise ValueError("reorder needs every rule id exactly once")
        now = datetime.now(timezone.utc)
        top = len(rule_ids) - 1
        for index, rule_id in enumerate(rule_ids):
            rule = self._rules[rule_id]
            if rule.priority != top - index:
                rule.priority = top - index
                rule.updated_at = now
        return self.rules()

    def move(self, rule_id: str, index: int) -> List[Rule]:
        self._require(rule_id)
        order = [rule.id for rule in order_rules(self._rules.values())]
        order.remove(rule_id)
        index = max(0, min(index, len(order)))
        order.insert(index, rule_id)
        return self.reorder(order)

    def search(self, text: str) -> List[Rule]:
        needle = text.strip()
        return [
            rule
            for rule in self.rules()
            if needle in rule.name or (rule.description and needle in rule.description)
        ]

    def counts(self) -> Dict[str, int]:
        rules = list(self._rules.values())
        counts = {
            "total": len(rules),
            "enabled": sum(1 for r in rules if r.enabled),
            "disabled": sum(1 for r in rules if not r.enabled),
            "system": sum(1 for r in rules if r.is_system_rule),
            "custom": sum(1 for r in rules if not r.is_system_rule),
        }
        for category in ReceiptCategory:
            targeted = sum(
                1 for r in rules if any(a.type is ActionType.SET_CATEGORY and a.value == category.value for a in r.actions)
            )
            if targeted:
                counts[f"category:{category.value}"] = targeted
        return counts

    def to_payload(self) -> Dict[str, Any]:
        return {
            "version": STORE_FORMAT_VERSION,
            "next_sequence": self._next_sequence,
            "rules": [rule.model_dump(mode="json") for rule in order_rules(self._rules.values())],
        }

    def save(self, path: Path) -> None:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(self.to_payload(), handle, indent=2, ensure_ascii=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], *, config: Optional[ClassificationConfig] = None) -> "RuleStore":
        store = cls(config=config)
        rules = [Rule.model_validate(raw) for raw in payload.get("rules", [])]
        # Stored rules are loaded as-is; a malformed one is reported at evaluation time.
        for rule in rules:
            store._rules[rule.id] = rule
        highest = max((rule.sequence for rule in rules), default=0)
        store._next_sequence = max(int(payload.get("next_sequence", 1)), highest + 1)
        return store

    @classmethod
    def load(cls, path: Path, *, config: Optional[ClassificationConfig] = None) -> "RuleStore":
        with path.open(encoding="utf-8") as handle:
            payload = json.load(handle)
        return cls.from_payload(payload, config=config)

    @classmethod
    def from_rules(cls, rules: Iterable[Rule], *, config: Optional[ClassificationConfig] = None) -> "RuleStore":
        store = cls(config=config)
        for rule in rules:
            store.add(rule)
        return store

    def _require(self, rule_id: str) -> Rule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise RuleNotFoundError(rule_id) from None
