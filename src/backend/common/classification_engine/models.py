from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class FieldId(str, Enum):
    RECEIPT_TYPE = "RECEIPT_TYPE"
    AMOUNT = "AMOUNT"
    DATE = "DATE"
    BUYER_NAME = "BUYER_NAME"
    SELLER_NAME = "SELLER_NAME"
    INVOICE_CODE = "INVOICE_CODE"
    INVOICE_NUMBER = "INVOICE_NUMBER"
    EXPENSE_TYPE = "EXPENSE_TYPE"
    DEPARTURE_PLACE = "DEPARTURE_PLACE"
    DESTINATION = "DESTINATION"
    FILE_NAME = "FILE_NAME"
    REMARKS = "REMARKS"

    @classmethod
    def from_key(cls, key: str) -> Optional["FieldId"]:
        """Resolve a field-bag key (enum name, camelCase or snake_case alias)."""
        text = (key or "").strip()
        if text in cls.__members__:
            return cls[text]
        return _FIELD_ALIASES.get(text) or _FIELD_ALIASES.get(text.lower())


def _build_field_aliases() -> Dict[str, FieldId]:
    aliases: Dict[str, FieldId] = {}
    for member in FieldId:
        snake = member.value.lower()
        head, *rest = snake.split("_")
        aliases[snake] = member
        aliases[head + "".join(part.title() for part in rest)] = member
    return aliases


_FIELD_ALIASES = _build_field_aliases()
# OCR output historically used these spellings for the totals/date columns.
_FIELD_ALIASES.update(
    {
        "totalAmount": FieldId.AMOUNT,
        "total_amount": FieldId.AMOUNT,
        "invoiceDate": FieldId.DATE,
        "invoice_date": FieldId.DATE,
    }
)


class FieldKind(str, Enum):
    TEXT = "TEXT"
    NUMBER = "NUMBER"
    DATE = "DATE"


class Operator(str, Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_EQUAL = "GREATER_EQUAL"
    LESS_EQUAL = "LESS_EQUAL"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    REGEX = "REGEX"
    IN_LIST = "IN_LIST"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class ActionType(str, Enum):
    SET_CATEGORY = "SET_CATEGORY"
    SET_SUB_CATEGORY = "SET_SUB_CATEGORY"
    SET_EXPENSE_TYPE = "SET_EXPENSE_TYPE"
    SET_DEPARTMENT = "SET_DEPARTMENT"
    SET_PROJECT = "SET_PROJECT"
    ADD_TAG = "ADD_TAG"
    ARCHIVE = "ARCHIVE"
    GENERATE_ARCHIVE_NUMBER = "GENERATE_ARCHIVE_NUMBER"


class ReceiptCategory(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    EXPENSE_TYPE = "EXPENSE_TYPE"
    CONTRACT = "CONTRACT"
    VOUCHER = "VOUCHER"
    OTHER = "OTHER"

    @property
    def archive_code(self) -> str:
        return _CATEGORY_CODES[self]

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_CODES: Dict[ReceiptCategory, str] = {
    ReceiptCategory.INCOME: "INC",
    ReceiptCategory.EXPENSE: "EXP",
    ReceiptCategory.EXPENSE_TYPE: "EXT",
    ReceiptCategory.CONTRACT: "CON",
    ReceiptCategory.VOUCHER: "VOU",
    ReceiptCategory.OTHER: "OTH",
}

_CATEGORY_DISPLAY_NAMES: Dict[ReceiptCategory, str] = {
    ReceiptCategory.INCOME: "收入类票据",
    ReceiptCategory.EXPENSE: "支出类票据",
    ReceiptCategory.EXPENSE_TYPE: "费用类票据",
    ReceiptCategory.CONTRACT: "合同文件",
    ReceiptCategory.VOUCHER: "账务凭证",
    ReceiptCategory.OTHER: "其他文件",
}


class ExpenseSubCategory(str, Enum):
    PROCUREMENT = "PROCUREMENT"
    EXPENSE = "EXPENSE"
    ASSET = "ASSET"
    TRAVEL = "TRAVEL"
    OFFICE = "OFFICE"
    BUSINESS_ENTERTAINMENT = "BUSINESS_ENTERTAINMENT"
    WELFARE = "WELFARE"
    MEAL = "MEAL"
    OTHER = "OTHER"


class ReceiptType(str, Enum):
    VAT_SPECIAL_INVOICE = "VAT_SPECIAL_INVOICE"
    VAT_ORDINARY_INVOICE = "VAT_ORDINARY_INVOICE"
    VAT_ELECTRONIC_INVOICE = "VAT_ELECTRONIC_INVOICE"
    MOTOR_VEHICLE_SALES_INVOICE = "MOTOR_VEHICLE_SALES_INVOICE"
    USED_CAR_SALES_INVOICE = "USED_CAR_SALES_INVOICE"
    TRAIN_TICKET = "TRAIN_TICKET"
    FLIGHT_ITINERARY = "FLIGHT_ITINERARY"
    BUS_TICKET = "BUS_TICKET"
    TAXI_RECEIPT = "TAXI_RECEIPT"
    ACCOMMODATION_INVOICE = "ACCOMMODATION_INVOICE"
    DINING_INVOICE = "DINING_INVOICE"
    REIMBURSEMENT_FORM = "REIMBURSEMENT_FORM"
    RECEIPT = "RECEIPT"
    BANK_STATEMENT = "BANK_STATEMENT"
    CONTRACT_SCAN = "CONTRACT_SCAN"
    PAYROLL = "PAYROLL"
    EXPENSE_DETAIL = "EXPENSE_DETAIL"
    UNKNOWN = "UNKNOWN"


class DiagnosticKind(str, Enum):
    MALFORMED_RULE = "MALFORMED_RULE"
    MALFORMED_PREDICATE = "MALFORMED_PREDICATE"
    MALFORMED_ACTION = "MALFORMED_ACTION"


class Diagnostic(BaseModel):
    rule_id: Optional[str] = None
    kind: DiagnosticKind
    message: str

    def as_pair(self) -> tuple[Optional[str], str]:
        return (self.rule_id, self.message)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Condition(BaseModel):
    field: FieldId
    operator: Operator
    value: str = ""
    # Joins this condition to the next one; ignored on the last condition.
    logical_operator: LogicalOperator = LogicalOperator.AND


class Action(BaseModel):
    type: ActionType
    value: str = ""


class Rule(BaseModel):
    id: str = ""
    name: str
    description: Optional[str] = None
    enabled: bool = True
    priority: int = 0
    conditions: List[Condition] = Field(default_factory=list)
    actions: List[Action] = Field(default_factory=list)
    is_system_rule: bool = False
    # Insertion order; lower wins among equal priorities.
    sequence: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ReceiptFields(BaseModel):
    """Extracted field values for one receipt (OCR output or manual entry)."""

    receipt_id: Optional[str] = None
    values: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("values", mode="before")
    @classmethod
    def _canonical_keys(cls, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return raw
        out: Dict[str, Any] = {}
        for key, value in raw.items():
            field_id = key if isinstance(key, FieldId) else FieldId.from_key(str(key))
            out[field_id.value if field_id is not None else str(key)] = value
        return out

    def get(self, field: FieldId) -> Any:
        return self.values.get(field.value)


class ArchiveRequest(BaseModel):
    # None means the caller's default archive location.
    path: Optional[str] = None


class ArchiveNumberRequest(BaseModel):
    period_key: str
    category_code: str


class MutationDirective(BaseModel):
    rule_id: Optional[str] = None

    category: Optional[ReceiptCategory] = None
    sub_category: Optional[ExpenseSubCategory] = None
    expense_type: Optional[str] = None
    department: Optional[str] = None
    project: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    archive: Optional[ArchiveRequest] = None
    archive_number_request: Optional[ArchiveNumberRequest] = None
    archive_number: Optional[str] = None

    diagnostics: List[Diagnostic] = Field(default_factory=list)

    def assignments(self) -> Dict[str, Any]:
        """Sparse field -> value mapping of everything this directive sets."""
        out: Dict[str, Any] = {}
        for name in ("category", "sub_category", "expense_type", "department", "project"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value.value if isinstance(value, Enum) else value
        if self.tags:
            out["tags"] = list(self.tags)
        if self.archive_number is not None:
            out["archive_number"] = self.archive_number
        return out

    @property
    def has_side_effects(self) -> bool:
        return self.archive is not None or self.archive_number_request is not None


class ClassificationResult(BaseModel):
    receipt_id: Optional[str] = None
    matched: bool = False
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    directive: Optional[MutationDirective] = None
    diagnostics: List[Diagnostic] = Field(default_factory=list)


class ClassificationRunReport(BaseModel):
    run_id: str
    generated_at: datetime
    rule_count: int = 0

    results: List[ClassificationResult] = Field(default_factory=list)
    totals: Dict[str, int] = Field(default_factory=dict)
    by_rule: Dict[str, int] = Field(default_factory=dict)
    diagnostic_count: int = 0
