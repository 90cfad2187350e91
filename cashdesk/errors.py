# Overview: Typed error hierarchy shared by services and routes.

"""
Ledger error taxonomy.

Every failure the ledger reports to a caller is one of these classes.
Routes translate them to JSON using ``code`` and ``status_code``; library
callers can branch on the class.

- ValidationError (and InvalidAmountError / InvalidStateError): caller-fixable,
  nothing was written.
- UnauthorizedError: the actor may not perform this transition.
- NotFoundError: unknown drawer or request in the caller's tenant.
- InsufficientFundsError: a hard refusal at write time (recording an outflow
  or creating a transfer). At approval time insufficient funds is NOT an
  error: the request resolves to REJECTED instead.
- AlreadyResolvedError: terminal information, do not retry.
- StorageConflictError: transient, safe to retry the whole call.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error the ledger surfaces."""

    code = "LEDGER_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(LedgerError):
    """400-level input problem."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidAmountError(ValidationError):
    """Amount is missing, not an integer number of cents, or out of range."""

    code = "INVALID_AMOUNT"


class InvalidStateError(ValidationError):
    """Operation is not allowed in the entity's current state."""

    code = "INVALID_STATE"
    status_code = 409


class UnauthorizedError(LedgerError):
    """Actor is not allowed to perform this operation."""

    code = "UNAUTHORIZED"
    status_code = 403


class NotFoundError(LedgerError):
    """Entity does not exist in the actor's tenant."""

    code = "NOT_FOUND"
    status_code = 404


class InsufficientFundsError(LedgerError):
    """Drawer balance does not cover the requested amount."""

    code = "INSUFFICIENT_FUNDS"
    status_code = 409


class AlreadyResolvedError(LedgerError):
    """Transfer request already reached a terminal state."""

    code = "ALREADY_RESOLVED"
    status_code = 409

    def __init__(self, message: str | None = None, *, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["current_status"] = self.current_status
        return payload


class StorageConflictError(LedgerError):
    """Concurrent write conflict; the whole call can be retried."""

    code = "STORAGE_CONFLICT"
    status_code = 503
    retryable = True
