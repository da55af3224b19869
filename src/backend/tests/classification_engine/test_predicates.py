import pytest

from common.classification_engine.models import DiagnosticKind, Operator
from common.classification_engine.predicates import evaluate


@pytest.mark.parametrize("operator", list(Operator))
def test_missing_field_is_false_for_every_operator(operator, cond, make_receipt, ctx):
    condition = cond("BUYER_NAME", operator.value, "Acme")
    assert evaluate(condition, make_receipt(sellerName="Acme"), ctx) is False
    assert len(ctx.diagnostics) == 0


def test_not_equals_on_missing_buyer_is_false(cond, make_receipt):
    assert evaluate(cond("BUYER_NAME", "NOT_EQUALS", "Acme"), make_receipt()) is False


def test_not_equals_on_present_value(cond, make_receipt):
    receipt = make_receipt(buyerName="Globex")
    assert evaluate(cond("BUYER_NAME", "NOT_EQUALS", "Acme"), receipt) is True
    assert evaluate(cond("BUYER_NAME", "EQUALS", "Globex"), receipt) is True


def test_string_operators_are_case_sensitive(cond, make_receipt):
    receipt = make_receipt(sellerName="Joe's restaurant")
    assert evaluate(cond("SELLER_NAME", "CONTAINS", "Restaurant"), receipt) is False
    assert evaluate(cond("SELLER_NAME", "CONTAINS", "restaurant"), receipt) is True
    assert evaluate(cond("SELLER_NAME", "NOT_CONTAINS", "Restaurant"), receipt) is True
    assert evaluate(cond("SELLER_NAME", "STARTS_WITH", "Joe"), receipt) is True
    assert evaluate(cond("SELLER_NAME", "STARTS_WITH", "joe"), receipt) is False
    assert evaluate(cond("SELLER_NAME", "ENDS_WITH", "restaurant"), receipt) is True


def test_cjk_text_matches_ordinally(cond, make_receipt):
    receipt = make_receipt(sellerName="北京全聚德餐饮有限公司")
    assert evaluate(cond("SELLER_NAME", "CONTAINS", "餐饮"), receipt) is True
    assert evaluate(cond("SELLER_NAME", "ENDS_WITH", "有限公司"), receipt) is True


def test_numeric_comparisons(cond, make_receipt):
    receipt = make_receipt(amount="150")
    assert evaluate(cond("AMOUNT", "GREATER_THAN", "100"), receipt) is True
    assert evaluate(cond("AMOUNT", "LESS_THAN", "100"), receipt) is False
    assert evaluate(cond("AMOUNT", "GREATER_EQUAL", "150.00"), receipt) is True
    assert evaluate(cond("AMOUNT", "LESS_EQUAL", "149.99"), receipt) is False


def test_amount_equality_is_numeric(cond, make_receipt):
    receipt = make_receipt(amount=100)
    assert evaluate(cond("AMOUNT", "EQUALS", "100.00"), receipt) is True
    assert evaluate(cond("AMOUNT", "NOT_EQUALS", "100.00"), receipt) is False


def test_unparsable_field_value_is_false_and_reported(cond, make_receipt, ctx):
    receipt = make_receipt(amount="about ten")
    assert evaluate(cond("AMOUNT", "GREATER_THAN", "5"), receipt, ctx) is False
    assert [d.kind for d in ctx.diagnostics] == [DiagnosticKind.MALFORMED_PREDICATE]


def test_unparsable_comparison_value_is_false_and_reported(cond, make_receipt, ctx):
    receipt = make_receipt(amount="10")
    assert evaluate(cond("AMOUNT", "GREATER_THAN", "lots"), receipt, ctx) is False
    assert evaluate(cond("AMOUNT", "NOT_EQUALS", "lots"), receipt, ctx) is False
    assert len(ctx.diagnostics) == 2


def test_date_comparisons(cond, make_receipt):
    receipt = make_receipt(date="2024/03/05")
    assert evaluate(cond("DATE", "GREATER_EQUAL", "2024-01-01"), receipt) is True
    assert evaluate(cond("DATE", "LESS_THAN", "2024-03-05"), receipt) is False
    assert evaluate(cond("DATE", "EQUALS", "2024年03月05日"), receipt) is True


def test_regex_uses_search_semantics(cond, make_receipt):
    receipt = make_receipt(invoiceNumber="No. 00123456")
    assert evaluate(cond("INVOICE_NUMBER", "REGEX", r"\d{8}"), receipt) is True
    assert evaluate(cond("INVOICE_NUMBER", "REGEX", r"^\d{8}$"), receipt) is False


def test_invalid_regex_is_false_and_reported_with_rule_id(cond, make_receipt, ctx):
    rule_ctx = ctx.for_rule("R-BAD")
    assert evaluate(cond("REMARKS", "REGEX", "(["), make_receipt(remarks="x"), rule_ctx) is False
    assert ctx.diagnostics.pairs()[0][0] == "R-BAD"
    assert ctx.diagnostics.items[0].kind is DiagnosticKind.MALFORMED_PREDICATE


def test_in_list_trims_elements_and_matches_exactly(cond, make_receipt):
    condition = cond("RECEIPT_TYPE", "IN_LIST", "TAXI_RECEIPT ,  TRAIN_TICKET")
    assert evaluate(condition, make_receipt(receiptType="TRAIN_TICKET")) is True
    assert evaluate(condition, make_receipt(receiptType="TRAIN")) is False
    assert evaluate(condition, make_receipt(receiptType=" TRAIN_TICKET")) is False


def test_in_list_on_amount_compares_numbers(cond, make_receipt):
    condition = cond("AMOUNT", "IN_LIST", "10, 20.0")
    assert evaluate(condition, make_receipt(amount=20)) is True
    assert evaluate(condition, make_receipt(amount="15")) is False


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), "NaN", "-Infinity"])
@pytest.mark.parametrize("operator", ["GREATER_THAN", "LESS_EQUAL", "EQUALS", "NOT_EQUALS", "IN_LIST"])
def test_non_finite_amount_is_false_and_reported(amount, operator, cond, make_receipt, ctx):
    receipt = make_receipt(amount=amount)
    assert evaluate(cond("AMOUNT", operator, "100"), receipt, ctx) is False
    assert [d.kind for d in ctx.diagnostics] == [DiagnosticKind.MALFORMED_PREDICATE]
