"""Error taxonomy shared by services and the HTTP layer.

Each error carries the HTTP status it maps to; the exception handlers in
``bookstore.main`` turn them into the standard response envelope.
"""


class BookstoreError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code = 500

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        self.message = message
        self.field_errors = field_errors
        super().__init__(message)


class AuthenticationRequiredError(BookstoreError):
    """Missing, invalid, expired or wrong-kind credentials."""

    status_code = 401


class ForbiddenError(BookstoreError):
    """Authenticated, but not allowed (role or deactivated account)."""

    status_code = 403


class NotFoundError(BookstoreError):
    status_code = 404


class ConflictError(BookstoreError):
    """Duplicate unique key (username, email, ISBN, title+author, category name)."""

    status_code = 409


class InvalidInputError(BookstoreError):
    """Validation, range, format or unparseable-filter failure."""

    status_code = 400

    @classmethod
    def from_field_errors(
        cls, field_errors: dict[str, str], default_message: str
    ) -> "InvalidInputError":
        """Use the single error's text as the message, or a summary when several fields failed."""
        if len(field_errors) == 1:
            message = next(iter(field_errors.values()))
        else:
            message = default_message
        return cls(message, field_errors=dict(field_errors))


class InsufficientStockError(InvalidInputError):
    def __init__(self, current_stock: int, requested_quantity: int) -> None:
        self.current_stock = current_stock
        self.requested_quantity = requested_quantity
        super().__init__(
            f"Insufficient stock. Current stock: {current_stock}, "
            f"requested quantity: {requested_quantity}"
        )


class StoreError(BookstoreError):
    """Infrastructure failure in the persistence layer; never retried here."""

    status_code = 500
