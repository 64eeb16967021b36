"""
Typed Exception Hierarchy for the Backoffice Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll and ledger callers must react to errors precisely.  Catching a
generic ValueError and parsing its message is fragile, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        payroll.generate(month=10, year=2023, actor_id=actor)
    except DuplicatePeriodError as e:
        api_response(code=e.code, month=e.month, year=e.year)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BackofficeError (base)
    |
    +-- ValidationError
    |   +-- LedgerValidationError
    |   |   +-- InvalidLedgerLineError
    |   |   +-- UnbalancedJournalError
    |   +-- InvalidPeriodError
    |   +-- DuplicatePeriodError
    |   +-- UnknownCategoryError
    |   +-- InvalidTransitionError
    |   |   +-- PayrollEntryPaidError
    |   +-- InvalidAssetAssignmentError
    |   +-- InvalidAmountError
    |
    +-- NotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- AssetNotFoundError
    |   +-- AssetAssignmentNotFoundError
    |   +-- PayrollEntryNotFoundError
    |   +-- PayrollAdjustmentNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- CreditNoteNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                          | When Raised
------------|-------------------------------|-----------------------------------
Validation  | INVALID_LEDGER_LINE           | Malformed GL line (sides, amounts)
            | UNBALANCED_JOURNAL            | Debits != Credits beyond tolerance
            | INVALID_PERIOD                | Month/year out of range
            | DUPLICATE_PERIOD              | Payroll already generated
            | UNKNOWN_CATEGORY              | Employee category not recognized
            | INVALID_TRANSITION            | State machine rejects the action
            | PAYROLL_ENTRY_PAID            | Mutating a paid payroll entry
            | INVALID_ASSET_ASSIGNMENT      | Bad dates or rate mismatch
            | INVALID_AMOUNT                | Negative/zero amount where forbidden
------------|-------------------------------|-----------------------------------
Not found   | EMPLOYEE_NOT_FOUND ...        | Referenced id does not exist

Validation errors are always surfaced and never retried automatically.
Store failures are not wrapped: ``sqlalchemy.exc.SQLAlchemyError``
propagates unchanged after the owning service rolls back.
"""

from decimal import Decimal


class BackofficeError(Exception):
    """
    Base exception for all backoffice kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BACKOFFICE_ERROR"


# Validation


class ValidationError(BackofficeError):
    """Base exception for rejected input or state."""

    code: str = "VALIDATION_ERROR"


class LedgerValidationError(ValidationError):
    """Base exception for ledger posting validation failures."""

    code: str = "LEDGER_VALIDATION_ERROR"


class InvalidLedgerLineError(LedgerValidationError):
    """A single GL line failed validation; nothing was written."""

    code: str = "INVALID_LEDGER_LINE"

    def __init__(self, reason: str, account_name: str | None = None):
        self.reason = reason
        self.account_name = account_name
        if account_name:
            super().__init__(f"Invalid ledger line for '{account_name}': {reason}")
        else:
            super().__init__(f"Invalid ledger line: {reason}")


class UnbalancedJournalError(LedgerValidationError):
    """Journal debits and credits differ by more than the tolerance."""

    code: str = "UNBALANCED_JOURNAL"

    def __init__(self, debits: Decimal, credits: Decimal, tolerance: Decimal):
        self.debits = debits
        self.credits = credits
        self.tolerance = tolerance
        super().__init__(
            f"Journal is unbalanced: debits={debits}, credits={credits} "
            f"(tolerance {tolerance})"
        )


class InvalidPeriodError(ValidationError):
    """Month or year is outside the accepted range."""

    code: str = "INVALID_PERIOD"

    def __init__(self, month: object, year: object):
        self.month = month
        self.year = year
        super().__init__(f"Invalid payroll period: month={month}, year={year}")


class DuplicatePeriodError(ValidationError):
    """Payroll has already been generated for this period."""

    code: str = "DUPLICATE_PERIOD"

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Payroll already generated for {month:02d}/{year}; "
            f"clear the period before regenerating"
        )


class UnknownCategoryError(ValidationError):
    """Employee category is not one of the closed set."""

    code: str = "UNKNOWN_CATEGORY"

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown employee category: {category!r}")


class InvalidTransitionError(ValidationError):
    """The workflow has no transition for this action from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        action: str,
        allowed_actions: tuple[str, ...] = (),
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.current_state = current_state
        self.action = action
        self.allowed_actions = allowed_actions
        allowed = ", ".join(allowed_actions) or "none"
        super().__init__(
            f"Cannot '{action}' {entity_type} {entity_id} in state '{current_state}' "
            f"(allowed: {allowed})"
        )


class PayrollEntryPaidError(InvalidTransitionError):
    """A paid payroll entry cannot be modified."""

    code: str = "PAYROLL_ENTRY_PAID"

    def __init__(self, entry_id: str, action: str = "modify"):
        super().__init__("payroll_entry", entry_id, "paid", action)


class InvalidAssetAssignmentError(ValidationError):
    """Asset assignment dates or rate are not acceptable."""

    code: str = "INVALID_ASSET_ASSIGNMENT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid asset assignment: {reason}")


class InvalidAmountError(ValidationError):
    """An amount is not a positive finite number where one is required."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: object):
        self.field = field
        self.amount = amount
        super().__init__(f"Invalid amount for {field}: {amount}")


# Not found


class NotFoundError(BackofficeError):
    """Base exception for a referenced record that does not exist."""

    code: str = "NOT_FOUND"
    entity_type: str = "record"

    def __init__(self, entity_id: object):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class EmployeeNotFoundError(NotFoundError):
    code: str = "EMPLOYEE_NOT_FOUND"
    entity_type = "Employee"


class ProjectNotFoundError(NotFoundError):
    code: str = "PROJECT_NOT_FOUND"
    entity_type = "Project"


class AssetNotFoundError(NotFoundError):
    code: str = "ASSET_NOT_FOUND"
    entity_type = "Asset"


class AssetAssignmentNotFoundError(NotFoundError):
    code: str = "ASSET_ASSIGNMENT_NOT_FOUND"
    entity_type = "Asset assignment"


class PayrollEntryNotFoundError(NotFoundError):
    code: str = "PAYROLL_ENTRY_NOT_FOUND"
    entity_type = "Payroll entry"


class PayrollAdjustmentNotFoundError(NotFoundError):
    code: str = "PAYROLL_ADJUSTMENT_NOT_FOUND"
    entity_type = "Payroll addition/deduction"


class InvoiceNotFoundError(NotFoundError):
    code: str = "INVOICE_NOT_FOUND"
    entity_type = "Invoice"


class CreditNoteNotFoundError(NotFoundError):
    code: str = "CREDIT_NOTE_NOT_FOUND"
    entity_type = "Credit note"

