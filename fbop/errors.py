"""Error taxonomy shared by the store adapter and the protocol services.

Services raise these; the HTTP layer translates them into responses.
Each error carries a short machine ``code`` so callers can tell the
lookup failures apart even though end users only see "invalid or
expired code".
"""


class FbopError(Exception):
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(FbopError):
    code = "not_found"


class ExpiredError(FbopError):
    code = "expired"


class UnauthenticatedError(FbopError):
    code = "unauthenticated"


class PermissionDeniedError(FbopError):
    code = "permission_denied"


class TransientStoreError(FbopError):
    """Network or database failure; safe to retry."""

    code = "transient_store_failure"


class PartialBatchFailureError(FbopError):
    """An earlier step of a multi-step operation succeeded, a later one failed."""

    code = "partial_batch_failure"


# Both render to end users as "Invalid or expired code"
INVALID_CODE_ERRORS = (NotFoundError, ExpiredError)
