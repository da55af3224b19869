import json

import yaml

from common.classification_engine.catalog import build_catalog, main


def test_catalog_lists_operators_per_field_kind():
    catalog = build_catalog()
    by_field = {entry.field.value: entry for entry in catalog.receipt_fields}

    assert len(by_field) == 12
    assert by_field["AMOUNT"].kind == "NUMBER"
    assert "GREATER_THAN" in [op.value for op in by_field["AMOUNT"].operators]
    assert "REGEX" not in [op.value for op in by_field["AMOUNT"].operators]
    assert "REGEX" in [op.value for op in by_field["SELLER_NAME"].operators]


def test_catalog_includes_system_rules_by_priority():
    catalog = build_catalog()
    ids = [entry.rule_id for entry in catalog.system_rules]

    assert ids[0] == "SYS-GROUND-TRANSPORT"
    assert ids[-1] == "SYS-VAT-INVOICES"
    codes = {entry.category.value: entry.archive_code for entry in catalog.categories}
    assert codes["EXPENSE"] == "EXP"


def test_main_json(capsys):
    main(["--format", "json"])
    payload = json.loads(capsys.readouterr().out)
    assert "SET_CATEGORY" in payload["action_types"]
    assert payload["categories"][0]["display_name"] == "收入类票据"


def test_main_yaml(capsys):
    main([])
    payload = yaml.safe_load(capsys.readouterr().out)
    assert {"receipt_fields", "operators", "system_rules"} <= set(payload)
