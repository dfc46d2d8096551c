"""Error taxonomy of the ordering domain.

Business-rule violations derive from Protean's ``ValidationError`` so they
carry a ``messages`` dict (field -> list of strings) exactly like field and
invariant failures raised by the framework. Missing entities derive from
``ObjectNotFoundError``, which repositories already raise for unknown ids.

Each class exposes a stable ``code`` and the ``http_status`` the API layer
answers with.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class DomainError(ValidationError):
    code = "VALIDATION_FAILED"
    http_status = 400

    def __init__(self, message, field="_entity"):
        if isinstance(message, dict):
            messages = message
        else:
            messages = {field: [message]}
        super().__init__(messages)

    @property
    def message(self) -> str:
        return "; ".join(msg for msgs in self.messages.values() for msg in msgs)


class ValidationFailed(DomainError):
    """Input violates a schema or format rule."""


class Conflict(DomainError):
    """A uniqueness rule was violated, e.g. a duplicate username."""

    code = "CONFLICT"
    http_status = 409


class InsufficientStock(DomainError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409


class InvalidTransition(DomainError):
    code = "INVALID_TRANSITION"
    http_status = 409


class TerminalState(DomainError):
    code = "TERMINAL_STATE"
    http_status = 409


class ReferencedByOrder(DomainError):
    """The entity still has order history; offline it instead of deleting."""

    code = "REFERENCED_BY_ORDER"
    http_status = 409


class ShopExpired(DomainError):
    code = "SHOP_EXPIRED"
    http_status = 403


class Unauthorized(DomainError):
    code = "UNAUTHORIZED"
    http_status = 403


class NotFound(ObjectNotFoundError):
    """Entity does not exist, or exists outside the caller's shop."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, message, field="_entity"):
        super().__init__({field: [message]})


class Internal(Exception):
    code = "INTERNAL"
    http_status = 500
