"""Who is asking: actors and the capabilities they carry.

Every order status change names its actor. The state machine checks the
actor's capability tags rather than a role string, so a new kind of caller
is a new combination of tags.
"""

from dataclasses import dataclass, field
from enum import Enum


class Capability(Enum):
    RECORD_PAYMENT = "record_payment"
    MANAGE_FULFILLMENT = "manage_fulfillment"
    CANCEL_OWN_ORDER = "cancel_own_order"


@dataclass(frozen=True)
class Actor:
    name: str
    capabilities: frozenset = field(default_factory=frozenset)
    customer_id: str | None = None

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def owns(self, customer_id) -> bool:
        return self.customer_id is not None and str(customer_id) == self.customer_id

    @classmethod
    def customer(cls, customer_id: str) -> "Actor":
        return cls(
            name=f"customer:{customer_id}",
            capabilities=frozenset({Capability.CANCEL_OWN_ORDER}),
            customer_id=customer_id,
        )

    @classmethod
    def administrator(cls, name: str = "admin") -> "Actor":
        return cls(name=name, capabilities=frozenset({Capability.MANAGE_FULFILLMENT}))

    @classmethod
    def payment_system(cls) -> "Actor":
        return cls(name="payment-gateway", capabilities=frozenset({Capability.RECORD_PAYMENT}))
