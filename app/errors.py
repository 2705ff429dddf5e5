class LedgerError(Exception):
    """Base class for errors the API turns into a client-facing response."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    status_code = 400


class InvalidCredentials(LedgerError):
    status_code = 401


class NotFoundError(LedgerError):
    status_code = 404


class ConflictError(LedgerError):
    """Business rule violation, e.g. touching a closed transaction."""

    status_code = 400


# ── Store failures (always surfaced as 500) ──────────────────────────────────

class StoreIOError(IOError):
    pass


class StoreParseError(ValueError):
    pass
