from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .fields import FIELD_KINDS
from .models import ActionType, Condition, ExpenseSubCategory, FieldId, Operator, ReceiptCategory
from .registry import registry
from .validation import OPERATORS_BY_KIND

# Ensure built-in system rules are imported/registered when generating a catalog.
from . import system_rules as _system_rules  # noqa: F401


class FieldCatalogEntry(BaseModel):
    field: FieldId
    kind: str
    operators: List[Operator] = Field(default_factory=list)


class CategoryCatalogEntry(BaseModel):
    category: ReceiptCategory
    display_name: str
    archive_code: str


class SystemRuleCatalogEntry(BaseModel):
    rule_id: str
    name: str
    description: str = ""
    priority: int
    conditions: List[Condition] = Field(default_factory=list)
    action_types: List[ActionType] = Field(default_factory=list)


class RuleCatalog(BaseModel):
    receipt_fields: List[FieldCatalogEntry] = Field(default_factory=list)
    operators: List[Operator] = Field(default_factory=list)
    action_types: List[ActionType] = Field(default_factory=list)
    categories: List[CategoryCatalogEntry] = Field(default_factory=list)
    sub_categories: List[ExpenseSubCategory] = Field(default_factory=list)
    system_rules: List[SystemRuleCatalogEntry] = Field(default_factory=list)


def build_catalog() -> RuleCatalog:
    fields = [
        FieldCatalogEntry(
            field=field,
            kind=FIELD_KINDS[field].value,
            operators=[op for op in Operator if op in OPERATORS_BY_KIND[FIELD_KINDS[field]]],
        )
        for field in FieldId
    ]

    system_rules: List[SystemRuleCatalogEntry] = []
    for rule_id in registry.ids():
        rule = registry.create(rule_id)
        system_rules.append(
            SystemRuleCatalogEntry(
                rule_id=rule.id,
                name=rule.name,
                description=rule.description or "",
                priority=rule.priority,
                conditions=list(rule.conditions),
                action_types=[action.type for action in rule.actions],
            )
        )
    system_rules.sort(key=lambda e: (-e.priority, e.rule_id))

    return RuleCatalog(
        receipt_fields=fields,
        operators=list(Operator),
        action_types=list(ActionType),
        categories=[
            CategoryCatalogEntry(category=c, display_name=c.display_name, archive_code=c.archive_code)
            for c in ReceiptCategory
        ],
        sub_categories=list(ExpenseSubCategory),
        system_rules=system_rules,
    )


def _dump_json(catalog: Dict[str, Any]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True, ensure_ascii=False)


def _dump_yaml(catalog: Dict[str, Any]) -> str:
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as exc:
        raise SystemExit(
            "PyYAML is required for YAML output. Install it in your backend venv (e.g., `uv add pyyaml`)."
        ) from exc

    return yaml.safe_dump(catalog, sort_keys=True, allow_unicode=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Print the fields, operators, actions and system rules the engine knows.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    args = parser.parse_args(argv)

    catalog = build_catalog().model_dump(mode="json")
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
