"""
Typed exceptions for the ledger.

Every error carries a machine-readable ``code``, the HTTP status it maps to,
a human-readable message and optional structured ``details``. Routers let
these propagate; the handlers registered in ``printerp.main`` turn them into
``{"error": ..., "code": ..., "details": ...}`` responses.

    LedgerError
    +-- ValidationError
    |   +-- UnbalancedEntry
    +-- NotFoundError
    |   +-- AccountNotFound, PeriodNotFound, EntryNotFound,
    |       BudgetNotFound, DepartmentNotFound, OrderNotFound,
    |       VendorNotFound, BillNotFound
    +-- PeriodError
    |   +-- PeriodClosed, PeriodAlreadyClosed, PeriodOverlap, PeriodInUse
    +-- PostedEntryImmutable
    +-- EntryCancelled
    +-- AccountInUse
    +-- BudgetConflict
    +-- OrderAlreadyPaid
    +-- BillNotEditable
    +-- Unauthorized
    +-- PersistenceError
"""
from decimal import Decimal
from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code: str = "LEDGER_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"


class UnbalancedEntry(ValidationError):
    """Total debits differ from total credits beyond the tolerance."""

    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debits: Decimal, total_credits: Decimal):
        self.total_debits = total_debits
        self.total_credits = total_credits
        self.difference = total_debits - total_credits
        super().__init__(
            "Debits must equal credits",
            details={
                "totalDebits": str(total_debits),
                "totalCredits": str(total_credits),
                "difference": str(self.difference),
            },
        )


class NotFoundError(LedgerError):
    code = "NOT_FOUND"
    status_code = 404


class AccountNotFound(NotFoundError):
    code = "ACCOUNT_NOT_FOUND"


class PeriodNotFound(NotFoundError):
    code = "PERIOD_NOT_FOUND"


class EntryNotFound(NotFoundError):
    code = "ENTRY_NOT_FOUND"


class BudgetNotFound(NotFoundError):
    code = "BUDGET_NOT_FOUND"


class DepartmentNotFound(NotFoundError):
    code = "DEPARTMENT_NOT_FOUND"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"


class VendorNotFound(NotFoundError):
    code = "VENDOR_NOT_FOUND"


class BillNotFound(NotFoundError):
    code = "BILL_NOT_FOUND"


class PeriodError(LedgerError):
    code = "PERIOD_ERROR"


class PeriodClosed(PeriodError):
    code = "PERIOD_CLOSED"


class PeriodAlreadyClosed(PeriodError):
    code = "PERIOD_ALREADY_CLOSED"


class PeriodOverlap(PeriodError):
    code = "PERIOD_OVERLAP"


class PeriodInUse(PeriodError):
    code = "PERIOD_IN_USE"


class PostedEntryImmutable(LedgerError):
    code = "POSTED_ENTRY_IMMUTABLE"


class EntryCancelled(LedgerError):
    code = "ENTRY_CANCELLED"


class AccountInUse(LedgerError):
    code = "ACCOUNT_IN_USE"


class BudgetConflict(LedgerError):
    code = "BUDGET_CONFLICT"
    status_code = 409


class OrderAlreadyPaid(LedgerError):
    code = "ORDER_ALREADY_PAID"


class BillNotEditable(LedgerError):
    """The bill is paid, partially paid or cancelled."""

    code = "BILL_NOT_EDITABLE"


class Unauthorized(LedgerError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message)


class PersistenceError(LedgerError):
    code = "PERSISTENCE_ERROR"
    status_code = 500
