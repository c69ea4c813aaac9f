"""Payment confirmation — drives a pending order from a provider webhook.

The webhook body only says "look at payment X". The provider is asked for the
payment's real status, and only a pending order is ever acted upon: providers
redeliver webhooks, and a second delivery for a settled order must be
acknowledged without capturing, reducing stock or clearing the cart again.

Order of effects for an approved payment:
    1. capture with the provider (authorized payments only)
    2. persist the order as paid
    3. reduce stock per line and clear the shopper's cart (on OrderPaid)

Two deliveries racing for the same order both see it pending, but only one
`paid` write commits: the loser's commit fails the aggregate version check,
the handler is re-run, and the re-run finds the order settled and skips it.
"""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.order.order import Order, PaymentProvider
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import PaymentStatus
from storefront.shared.errors import ErrorCode, NotFoundError, PaymentProviderError


class ConfirmationOutcome:
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    AWAITING_PAYMENT = "awaiting_payment"
    SKIPPED = "skipped"


@storefront.command(part_of="Order")
class ProcessPaymentConfirmation:
    payment_provider = String(required=True, choices=PaymentProvider)
    payment_id = String(required=True, max_length=255)
    reference_id = String(max_length=255)  # Order id echoed in the webhook body, unverified


def _locate_order(repo, reference_id, payment_id) -> Order:
    order = repo.find_by_reference(reference_id) or repo.find_by_provider_session(payment_id)
    if order is None:
        raise NotFoundError(
            ErrorCode.ORDER_NOT_FOUND,
            "No order for this payment",
            reference_id=reference_id,
            payment_id=payment_id,
        )
    return order


@storefront.command_handler(part_of=Order)
class PaymentConfirmationHandler:
    @handle(ProcessPaymentConfirmation)
    def process_payment_confirmation(self, command):
        gateway = get_gateway(command.payment_provider)
        log = logger.bind(payment_provider=command.payment_provider, payment_id=command.payment_id)

        # Raises PaymentProviderError: no transition, the provider will retry
        verification = gateway.retrieve_payment(command.payment_id)

        repo = current_domain.repository_for(Order)
        order = _locate_order(repo, verification.reference_id or command.reference_id, command.payment_id)
        log = log.bind(order_id=str(order.id))

        if not order.is_pending:
            log.info("payment_confirmation_skipped", status=order.status)
            return ConfirmationOutcome.SKIPPED

        status = verification.status
        if status == PaymentStatus.PENDING:
            log.info("payment_not_completed")
            return ConfirmationOutcome.AWAITING_PAYMENT

        if status == PaymentStatus.FAILED:
            order.fail(reason=verification.failure_reason or "Payment rejected by provider")
            repo.add(order)
            log.info("order_payment_failed")
            return ConfirmationOutcome.FAILED

        if status in (PaymentStatus.CANCELLED, PaymentStatus.EXPIRED):
            order.cancel(reason=f"Payment {status.value}")
            repo.add(order)
            log.info("order_payment_cancelled", payment_status=status.value)
            return ConfirmationOutcome.CANCELLED

        if status == PaymentStatus.AUTHORIZED:
            capture = gateway.capture_payment(command.payment_id, order.total_amount, order.currency)
            if not capture.success:
                log.error("payment_capture_failed", reason=capture.failure_reason)
                raise PaymentProviderError(
                    ErrorCode.PAYMENT_CAPTURE_FAILED,
                    capture.failure_reason or "Capture failed",
                    order_id=str(order.id),
                )

        # Stock and cart are settled by OrderSettlementEventHandler once this commits
        order.mark_paid(payment_provider_session_id=command.payment_id)
        repo.add(order)

        log.info("order_paid", total_amount=order.total_amount)
        return ConfirmationOutcome.PAID
