"""
Casket Ledger — Domain error taxonomy

Every ledger operation either applies completely or raises one of these.
`code` and `status_code` let the API layer translate them without
inspecting messages.
"""


class LedgerError(Exception):
    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """A required field is missing or malformed."""
    code = "validation_error"
    status_code = 422


class InsufficientStockError(LedgerError):
    """A sale was attempted without enough units on hand."""
    code = "insufficient_stock"
    status_code = 409


class InvalidStateError(LedgerError):
    """The order is not in a status that allows the requested transition."""
    code = "invalid_state"
    status_code = 409


class NotFoundError(LedgerError):
    code = "not_found"
    status_code = 404


class ConcurrencyConflictError(LedgerError):
    """Optimistic-lock retries were exhausted for a contended row."""
    code = "concurrency_conflict"
    status_code = 409
