from datetime import date

from common.classification_engine.archive_numbers import InMemoryArchiveNumberGenerator
from common.classification_engine.engine import ClassificationEngine
from common.classification_engine.runner import ClassificationRunner


def _rules(make_rule, cond, action):
    return [
        make_rule(
            "Trains",
            priority=10,
            conditions=[cond("RECEIPT_TYPE", "EQUALS", "TRAIN_TICKET")],
            actions=[action("SET_CATEGORY", "EXPENSE"), action("GENERATE_ARCHIVE_NUMBER")],
        ),
        make_rule(
            "Big",
            priority=5,
            conditions=[cond("AMOUNT", "GREATER_THAN", "500")],
            actions=[action("ADD_TAG", "big")],
        ),
        make_rule("Off", enabled=False, conditions=[cond("REMARKS", "CONTAINS", "")]),
    ]


def _receipts(make_receipt):
    receipts = []
    for i in range(40):
        if i % 2 == 0:
            receipts.append(make_receipt(f"t{i}", receiptType="TRAIN_TICKET", date="2024-03-05"))
        elif i % 3 == 0:
            receipts.append(make_receipt(f"b{i}", amount=str(600 + i), remarks="x"))
        else:
            receipts.append(make_receipt(f"n{i}", amount="10", remarks="x"))
    return receipts


def _strip_numbers(report):
    return [
        (r.receipt_id, r.rule_id, r.directive.category if r.directive else None, r.directive.tags if r.directive else None)
        for r in report.results
    ]


def test_report_totals(make_rule, cond, action, make_receipt):
    runner = ClassificationRunner(_rules(make_rule, cond, action))
    report = runner.run(_receipts(make_receipt))

    assert report.rule_count == 2
    assert report.totals["matched"] + report.totals["unmatched"] == 40
    assert report.by_rule["TRAINS"] == 20
    assert "OFF" not in report.by_rule
    assert report.diagnostic_count == 0
    assert report.run_id


def test_parallel_matches_sequential(make_rule, cond, action, make_receipt):
    rules = _rules(make_rule, cond, action)
    receipts = _receipts(make_receipt)
    sequential = ClassificationRunner(rules).run(receipts)
    parallel = ClassificationRunner(rules, max_workers=8).run(receipts)

    assert _strip_numbers(parallel) == _strip_numbers(sequential)
    assert parallel.totals == sequential.totals


def test_parallel_archive_numbers_are_unique(make_rule, cond, action, make_receipt):
    engine = ClassificationEngine(archive_numbers=InMemoryArchiveNumberGenerator())
    runner = ClassificationRunner(_rules(make_rule, cond, action), engine=engine, max_workers=8)
    report = runner.run(_receipts(make_receipt))

    numbers = [r.directive.archive_number for r in report.results if r.rule_id == "TRAINS"]
    assert len(numbers) == 20
    assert sorted(numbers) == [f"2024-03-EXP-{n:04d}" for n in range(1, 21)]


def test_rule_edits_after_snapshot_are_not_seen(make_rule, cond, action, make_receipt):
    rules = _rules(make_rule, cond, action)
    runner = ClassificationRunner(rules)
    rules[0].conditions[0].value = "FLIGHT_ITINERARY"
    rules[0].enabled = False

    result = runner.classify(make_receipt(receiptType="TRAIN_TICKET"), as_of=date(2024, 1, 1))
    assert result.rule_id == "TRAINS"
    assert result.directive.archive_number_request.period_key == "2024-01"
