"""Typed access to receipt field values.

Every field has a fixed semantic kind. Values come back as `str`, `Decimal`
or `date`; absent values come back as `MISSING`, which is distinct from an
empty string.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

from .config import ClassificationConfig
from .errors import UnknownFieldError
from .models import FieldId, FieldKind, ReceiptFields


class _Missing:
    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

FieldValue = Union[str, Decimal, date]

FIELD_KINDS: Dict[FieldId, FieldKind] = {
    FieldId.RECEIPT_TYPE: FieldKind.TEXT,
    FieldId.AMOUNT: FieldKind.NUMBER,
    FieldId.DATE: FieldKind.DATE,
    FieldId.BUYER_NAME: FieldKind.TEXT,
    FieldId.SELLER_NAME: FieldKind.TEXT,
    FieldId.INVOICE_CODE: FieldKind.TEXT,
    FieldId.INVOICE_NUMBER: FieldKind.TEXT,
    FieldId.EXPENSE_TYPE: FieldKind.TEXT,
    FieldId.DEPARTURE_PLACE: FieldKind.TEXT,
    FieldId.DESTINATION: FieldKind.TEXT,
    FieldId.FILE_NAME: FieldKind.TEXT,
    FieldId.REMARKS: FieldKind.TEXT,
}

_unmapped = set(FieldId) - set(FIELD_KINDS)
if _unmapped:  # pragma: no cover
    raise RuntimeError(f"Field kinds missing for: {sorted(f.value for f in _unmapped)}")

_CURRENCY_PREFIXES = ("¥", "￥", "$", "€")


def field_kind(field: Any) -> FieldKind:
    try:
        return FIELD_KINDS[FieldId(field)]
    except (ValueError, KeyError) as exc:
        raise UnknownFieldError(f"Unknown field identifier: {field!r}") from exc


def extract(
    field: Any,
    receipt: ReceiptFields,
    config: Optional[ClassificationConfig] = None,
) -> Union[FieldValue, _Missing]:
    kind = field_kind(field)
    raw = receipt.get(FieldId(field))
    if raw is None:
        return MISSING

    if kind is FieldKind.NUMBER:
        number = parse_decimal(raw)
        return number if number is not None else as_text(raw)
    if kind is FieldKind.DATE:
        formats = (config or ClassificationConfig()).date_formats
        parsed = parse_date(raw, formats)
        return parsed if parsed is not None else as_text(raw)
    return as_text(raw)


def as_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def parse_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        number = _parse_decimal_text(value)
        if number is None:
            return None
    else:
        return None
    # NaN and infinities do not order; treat them as unparsable.
    if not number.is_finite():
        return None
    return number


def _parse_decimal_text(value: str) -> Optional[Decimal]:
    text = value.strip().replace(",", "")
    for prefix in _CURRENCY_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):].strip()
            break
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def parse_date(value: Any, formats: Iterable[str]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
