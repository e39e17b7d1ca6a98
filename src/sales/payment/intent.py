"""Payment intent attachment — command and handler.

The gateway owns the payment intent; the order only remembers its id.
Attaching an intent does not change the order's status.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.order.order import Order


@sales.command(part_of="Order")
class AttachPaymentIntent:
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)


@sales.command_handler(part_of=Order)
class AttachPaymentIntentHandler:
    @handle(AttachPaymentIntent)
    def attach_payment_intent(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.payment_intent_id == command.payment_intent_id:
            return
        order.attach_payment_intent(command.payment_intent_id)
        repo.add(order)
