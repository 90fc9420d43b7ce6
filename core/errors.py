"""
Domain errors raised by the ledger services.
Every error carries a stable ``code`` and the HTTP status the API maps it to.
Services raise these inside transaction.atomic() so a failed call leaves no partial state.
"""


class LedgerError(Exception):
    """Base class for every business-rule failure."""
    code = "error"
    status_code = 400

    def __init__(self, detail, code=None):
        super().__init__(detail)
        self.detail = detail
        if code:
            self.code = code

    def __str__(self):
        return str(self.detail)


class ValidationError(LedgerError):
    """Input rejected before any mutation (bad dates, unknown fields, empty batch)."""
    code = "validation_error"
    status_code = 400


class ConflictError(LedgerError):
    """The change collides with existing data (duplicate active registration)."""
    code = "conflict"
    status_code = 409


class NotFoundError(LedgerError):
    code = "not_found"
    status_code = 404


class InvalidStateError(LedgerError):
    """The target's current status does not allow the requested change."""
    code = "invalid_state"
    status_code = 409
