"""Error taxonomy for the Sales domain.

Every failure surfaced by the cart, order, payment and invoice services is a
``SalesError`` subclass. Each carries a human-readable message, a structured
``context`` dict (entity, identifier, current/requested state) and the HTTP
status the API layer maps it to.
"""


class SalesError(Exception):
    kind = "error"
    http_status = 500

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def as_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "context": self.context}


class NotFound(SalesError):
    """A referenced entity does not exist."""

    kind = "not_found"
    http_status = 404


class InvalidArgument(SalesError):
    """Malformed input, e.g. a non-positive quantity."""

    kind = "invalid_argument"
    http_status = 400


class InvalidState(SalesError):
    """The operation is not valid for the entity's current state."""

    kind = "invalid_state"
    http_status = 400


class IllegalTransition(InvalidState):
    """An order status change not permitted by the transition table."""

    kind = "illegal_transition"
    http_status = 409

    def __init__(self, order_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot transition order {order_id} from {current} to {requested}",
            entity="Order",
            id=order_id,
            current=current,
            requested=requested,
        )
        self.current = current
        self.requested = requested


class Conflict(SalesError):
    """A concurrent mutation of the same entity won the race."""

    kind = "conflict"
    http_status = 409


class Unauthorized(SalesError):
    """Failed webhook signature, or an actor lacking a capability."""

    kind = "unauthorized"
    http_status = 401


class DependencyTimeout(SalesError):
    """An external collaborator did not answer within the allotted time."""

    kind = "dependency_timeout"
    http_status = 504
