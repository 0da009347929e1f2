"""
Typed exception hierarchy for the cash ledger.

Every error carries a machine-readable ``code`` class attribute
and the structured context the caller needs to fix it: which
entity, which field, which id. Callers catch by type, never by
parsing messages.

    CashLedgerError
    |
    +-- ValidationError
    |   +-- InvalidCategory
    |   +-- InvalidAmount
    |   +-- InvalidQuantity
    |   +-- MissingCounterparty
    |   +-- DuplicateAccountName
    |   +-- DuplicateDenomination
    |
    +-- NotFound
    |   +-- AccountNotFound
    |   +-- TransactionNotFound
    |   +-- DenominationNotFound
    |   +-- PeriodAggregateNotFound
    |
    +-- PartialBatchRejected
    +-- ConcurrencyConflict
    +-- PersistenceFailure
    +-- NotAuthorized

Validation and not-found errors are caller-fixable and never
retried. ConcurrencyConflict is safe to retry once as a whole
unit of work. PersistenceFailure means the store is unavailable.
"""


class CashLedgerError(Exception):
    """Base exception for all cash ledger errors."""

    code: str = "CASH_LEDGER_ERROR"

    def __init__(self, message: str, entity: str | None = None,
                 field: str | None = None):
        self.message = message
        self.entity = entity
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "entity": self.entity,
            "field": self.field,
            "details": None,
        }


# --- Validation ---


class ValidationError(CashLedgerError):
    """Caller-supplied data is invalid."""

    code: str = "VALIDATION_ERROR"


class InvalidCategory(ValidationError):
    """Category does not match the closed enumeration for its kind."""

    code: str = "INVALID_CATEGORY"

    def __init__(self, entity: str, value: str, allowed: list[str]):
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Invalid {entity} category '{value}'. "
            f"Allowed: {', '.join(allowed)}",
            entity=entity,
            field="category",
        )


class InvalidAmount(ValidationError):
    """Amount is not a valid fixed-precision money value."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value, reason: str, entity: str | None = None,
                 field: str = "amount"):
        self.value = value
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            entity=entity,
            field=field,
        )


class InvalidQuantity(ValidationError):
    """Denomination quantity must be an integer within the column range."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, value, maximum: int):
        self.value = value
        super().__init__(
            f"Invalid quantity {value!r}: must be an integer "
            f"from 0 to {maximum}",
            entity="denomination_count",
            field="quantity",
        )


class MissingCounterparty(ValidationError):
    """A tithe must name the person who gave it."""

    code: str = "MISSING_COUNTERPARTY"

    def __init__(self, category: str):
        self.category = category
        super().__init__(
            f"Income with source '{category}' requires a counterparty_id",
            entity="income",
            field="counterparty_id",
        )


class DuplicateAccountName(ValidationError):

    code: str = "DUPLICATE_ACCOUNT_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cash account '{name}' already exists",
            entity="cash_account",
            field="name",
        )


class DuplicateDenomination(ValidationError):

    code: str = "DUPLICATE_DENOMINATION"

    def __init__(self, account_id: int, denomination_value):
        self.account_id = account_id
        self.denomination_value = denomination_value
        super().__init__(
            f"Denomination {denomination_value} already exists "
            f"for cash account {account_id}",
            entity="denomination_count",
            field="denomination_value",
        )


# --- Not found ---


class NotFound(CashLedgerError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id, field: str = "id"):
        self.entity_id = entity_id
        super().__init__(
            f"{entity.replace('_', ' ').capitalize()} {entity_id} not found",
            entity=entity,
            field=field,
        )


class AccountNotFound(NotFound):

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id, field: str = "account_id"):
        super().__init__("cash_account", account_id, field=field)


class TransactionNotFound(NotFound):

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, kind: str, transaction_id):
        super().__init__(kind, transaction_id)


class DenominationNotFound(NotFound):

    code: str = "DENOMINATION_NOT_FOUND"

    def __init__(self, account_id, denomination_value):
        self.account_id = account_id
        super().__init__(
            "denomination_count",
            f"{denomination_value} (cash account {account_id})",
            field="denomination_value",
        )


class PeriodAggregateNotFound(NotFound):

    code: str = "PERIOD_AGGREGATE_NOT_FOUND"

    def __init__(self, period_id):
        super().__init__("period_aggregate", period_id, field="period_id")


# --- Batch ---


class PartialBatchRejected(CashLedgerError):
    """
    One or more bulk items failed validation.

    Nothing from the batch was written. ``details`` holds one
    dict per failing item: index, field, code, message.
    """

    code: str = "PARTIAL_BATCH_REJECTED"

    def __init__(self, entity: str, details: list[dict]):
        self.details = details
        super().__init__(
            f"Bulk {entity} batch rejected: {len(details)} invalid item(s)",
            entity=entity,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["details"] = self.details
        return data


# --- Infrastructure ---


class ConcurrencyConflict(CashLedgerError):
    """Lock or serialization failure; the unit of work was rolled back."""

    code: str = "CONCURRENCY_CONFLICT"


class PersistenceFailure(CashLedgerError):
    """The underlying store failed; the unit of work was rolled back."""

    code: str = "PERSISTENCE_FAILURE"


class NotAuthorized(CashLedgerError):
    """Caller lacks the capability for a privileged operation."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Not authorized to {action}")
