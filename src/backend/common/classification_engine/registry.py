from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List

from .models import Rule

logger = logging.getLogger(__name__)

RuleFactory = Callable[[], Rule]


class SystemRuleRegistry:
    def __init__(self):
        self._factories: Dict[str, RuleFactory] = {}

    def register(self, factory: RuleFactory) -> None:
        rule_id = factory().id
        if not rule_id:
            raise ValueError(f"System rule factory {factory.__name__} returned a rule without an id")
        if rule_id in self._factories:
            raise ValueError(f"Duplicate system rule id registered: {rule_id}")
        self._factories[rule_id] = factory

    def create_all(self) -> List[Rule]:
        return [self.create(rule_id) for rule_id in self._factories]

    def create(self, rule_id: str) -> Rule:
        rule = self._factories[rule_id]()
        return rule.model_copy(update={"is_system_rule": True})

    def ids(self) -> Iterable[str]:
        return self._factories.keys()


registry = SystemRuleRegistry()


def register_system_rule(factory: RuleFactory) -> RuleFactory:
    registry.register(factory)
    return factory


def seed_system_rules(store, *, rules_registry: SystemRuleRegistry = registry) -> List[Rule]:
    """Add registered system rules missing from `store` (first run or after an upgrade)."""
    added = []
    for rule_id in rules_registry.ids():
        if rule_id in store:
            continue
        added.append(store.add(rules_registry.create(rule_id)))
    if added:
        logger.info("seeded %d system rules", len(added))
    return added
