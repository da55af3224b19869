from .dining import SYSTEM_DINING
from .lodging import SYSTEM_LODGING
from .travel import SYSTEM_GROUND_TRANSPORT, SYSTEM_TRAIN_AND_FLIGHT
from .vat_invoices import SYSTEM_VAT_INVOICES

__all__ = [
    "SYSTEM_DINING",
    "SYSTEM_GROUND_TRANSPORT",
    "SYSTEM_LODGING",
    "SYSTEM_TRAIN_AND_FLIGHT",
    "SYSTEM_VAT_INVOICES",
]
