"""Public interface for the ``financeiro`` package.

Re-exports the pure engine (sanitizers, date validation, totals, normalizers,
ordering), the data models and the stateful session. No runtime logic lives
here.
"""

from .dates import date_sort_key, format_month_label, is_calendar_valid_date, is_month_key
from .models import (
    CofrinhoConfig,
    FinanceMonth,
    FinanceStore,
    NormalizedStore,
    Payment,
    SortOrder,
    StatusFilter,
    Totals,
)
from .normalize import (
    Recognized,
    Unrecognized,
    classify_document,
    normalize_month,
    normalize_payment,
    normalize_store,
)
from .ordering import filter_payments, sort_payments, visible_payments
from .sanitizers import (
    format_money,
    format_money_input,
    parse_money_to_number,
    sanitize_date_digits,
    sanitize_free_text,
    sanitize_money_digits,
)
from .session import FinanceSession
from .storage import InvalidDocumentError, JsonFileStorage, export_document, parse_import
from .totals import calculate_totals, is_savings_label

__all__ = [
    # Sanitizers
    "sanitize_free_text",
    "sanitize_money_digits",
    "format_money",
    "format_money_input",
    "parse_money_to_number",
    "sanitize_date_digits",
    # Dates
    "is_calendar_valid_date",
    "date_sort_key",
    "is_month_key",
    "format_month_label",
    # Totals
    "calculate_totals",
    "is_savings_label",
    # Normalization
    "classify_document",
    "Recognized",
    "Unrecognized",
    "normalize_payment",
    "normalize_month",
    "normalize_store",
    # Ordering
    "filter_payments",
    "sort_payments",
    "visible_payments",
    # Persistence / session
    "FinanceSession",
    "InvalidDocumentError",
    "JsonFileStorage",
    "export_document",
    "parse_import",
    # Models / types
    "Payment",
    "CofrinhoConfig",
    "FinanceMonth",
    "FinanceStore",
    "NormalizedStore",
    "Totals",
    "StatusFilter",
    "SortOrder",
]
