from datetime import date, datetime
from decimal import Decimal

import pytest

from common.classification_engine.errors import UnknownFieldError
from common.classification_engine.fields import MISSING, extract, field_kind, parse_decimal
from common.classification_engine.models import FieldId, FieldKind, ReceiptFields, ReceiptType


def test_text_field_and_missing_field(make_receipt):
    receipt = make_receipt(sellerName="Joe's Restaurant")
    assert extract(FieldId.SELLER_NAME, receipt) == "Joe's Restaurant"
    assert extract(FieldId.BUYER_NAME, receipt) is MISSING


def test_empty_string_is_present_not_missing(make_receipt):
    receipt = make_receipt(remarks="")
    assert extract(FieldId.REMARKS, receipt) == ""
    assert extract(FieldId.REMARKS, receipt) is not MISSING


def test_none_value_is_missing(make_receipt):
    assert extract(FieldId.DESTINATION, make_receipt(destination=None)) is MISSING


def test_amount_is_parsed_as_decimal(make_receipt):
    assert extract(FieldId.AMOUNT, make_receipt(amount="¥1,234.50")) == Decimal("1234.50")
    assert extract(FieldId.AMOUNT, make_receipt(amount=12.5)) == Decimal("12.5")
    assert extract(FieldId.AMOUNT, make_receipt(amount=7)) == Decimal("7")


def test_unparsable_amount_comes_back_as_text(make_receipt):
    assert extract(FieldId.AMOUNT, make_receipt(amount="about ten")) == "about ten"


def test_dates_are_parsed_from_common_formats(make_receipt):
    assert extract(FieldId.DATE, make_receipt(date="2024年03月05日")) == date(2024, 3, 5)
    assert extract(FieldId.DATE, make_receipt(date="2024/03/05")) == date(2024, 3, 5)
    assert extract(FieldId.DATE, make_receipt(date=datetime(2024, 3, 5, 14, 30))) == date(2024, 3, 5)


def test_enum_values_are_read_as_their_name(make_receipt):
    receipt = make_receipt(receiptType=ReceiptType.TAXI_RECEIPT)
    assert extract(FieldId.RECEIPT_TYPE, receipt) == "TAXI_RECEIPT"


def test_unknown_field_is_a_programmer_error(make_receipt):
    with pytest.raises(UnknownFieldError):
        extract("BUYER_TAX_ID", make_receipt())


def test_field_kinds():
    assert field_kind(FieldId.AMOUNT) is FieldKind.NUMBER
    assert field_kind(FieldId.DATE) is FieldKind.DATE
    assert field_kind("SELLER_NAME") is FieldKind.TEXT


def test_field_bag_accepts_aliases_and_keeps_unknown_keys():
    receipt = ReceiptFields(
        values={"sellerName": "A", "total_amount": 5, "INVOICE_CODE": "011", "buyerTaxId": "9133"}
    )
    assert receipt.get(FieldId.SELLER_NAME) == "A"
    assert receipt.get(FieldId.AMOUNT) == 5
    assert receipt.get(FieldId.INVOICE_CODE) == "011"
    assert receipt.values["buyerTaxId"] == "9133"


@pytest.mark.parametrize("value", [float("nan"), float("-inf"), Decimal("NaN"), "inf"])
def test_non_finite_amounts_do_not_parse(value):
    assert parse_decimal(value) is None
