"""
Custom exceptions for tourbooks.

All tourbooks-specific exceptions inherit from TourbooksError for easy catching.
Each carries a machine-readable ``code`` that request handlers translate into
HTTP or form errors.
"""


class TourbooksError(Exception):
    """Base exception for all tourbooks errors."""

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(TourbooksError):
    """Input validation errors."""

    def __init__(self, message: str, field: str = None, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)
        self.field = field


class InvalidAmountError(ValidationError):
    """Raised when an amount is missing, NaN, infinite or otherwise malformed."""

    def __init__(self, value, field: str = "amount", reason: str = None, code: str = "INVALID_AMOUNT"):
        message = f"Invalid amount for {field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, field, code)
        self.value = value


class InvalidDateError(ValidationError):
    """Raised when a date cannot be parsed."""

    def __init__(self, value, field: str = "date", code: str = "INVALID_DATE"):
        super().__init__(f"Invalid date for {field}: {value!r}", field, code)
        self.value = value


class DatabaseError(TourbooksError):
    """Database operation errors."""

    def __init__(self, message: str, code: str = "DB_ERROR"):
        super().__init__(message, code)


class AccountNotFoundError(TourbooksError):
    """Raised when a bank or cash account is not found."""

    def __init__(self, account_id, code: str = "ACCOUNT_NOT_FOUND"):
        super().__init__(f"Account not found: {account_id}", code)
        self.account_id = account_id


class TransactionNotFoundError(TourbooksError):
    """Raised when a book transaction is not found."""

    def __init__(self, transaction_id, code: str = "TRANSACTION_NOT_FOUND"):
        super().__init__(f"Transaction not found: {transaction_id}", code)
        self.transaction_id = transaction_id


class ConcurrentUpdateError(TourbooksError):
    """
    Raised when an account balance changed underneath a writer.

    The balance update is a compare-and-swap on the account's version column;
    losing the race surfaces here instead of silently overwriting the other
    writer's balance.
    """

    def __init__(self, account_id, expected_version: int, code: str = "CONCURRENT_UPDATE"):
        super().__init__(
            f"Account {account_id} was modified concurrently (expected version {expected_version})",
            code
        )
        self.account_id = account_id
        self.expected_version = expected_version


class ChallanError(TourbooksError):
    """Raised when a TDS challan operation is not allowed."""

    def __init__(self, message: str, code: str = "CHALLAN_ERROR"):
        super().__init__(message, code)
