from __future__ import annotations

from typing import List


class UnknownFieldError(LookupError):
    """A field identifier outside the closed field set reached the engine.

    Indicates a schema mismatch between stored rules and this engine version,
    not bad receipt data.
    """


class RuleValidationError(ValueError):
    def __init__(self, rule_name: str, problems: List[str]):
        self.rule_name = rule_name
        self.problems = list(problems)
        super().__init__(f"Rule '{rule_name}' is invalid: " + "; ".join(self.problems))


class RuleNotFoundError(KeyError):
    pass


class SystemRuleError(ValueError):
    """Raised when a user operation would remove a system rule."""
