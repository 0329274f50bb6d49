"""Payment aggregate: one per order, tracking the gateway intent and its outcome.

Payment lifecycle:
    pending -> succeeded | failed
    failed -> pending (a new intent replaces the failed one)
    succeeded -> refunded | partially_refunded

``succeeded``, ``failed`` and the refunded states are terminal for gateway
outcomes: a late or repeated webhook never moves a payment out of them.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateTransitionError
from marketplace.payment.events import PaymentFailed, PaymentIntentCreated, PaymentRefunded, PaymentSucceeded


class PaymentStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING},
    PaymentStatus.SUCCEEDED: {PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED},
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.PARTIALLY_REFUNDED: set(),
}

_OUTCOME_TERMINAL = {
    PaymentStatus.SUCCEEDED,
    PaymentStatus.FAILED,
    PaymentStatus.REFUNDED,
    PaymentStatus.PARTIALLY_REFUNDED,
}


@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    customer_id = Identifier(required=True)
    intent_id = String(required=True, max_length=255, unique=True)
    client_secret = String(max_length=255)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    attempt_count = Integer(default=1, min_value=1)
    failure_reason = String(max_length=500)
    refund_id = String(max_length=255)
    refunded_amount = Float(default=0.0, min_value=0.0)
    refunded_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def refunded_amount_cannot_exceed_amount(self):
        if self.refunded_amount and self.amount is not None and self.refunded_amount > self.amount + 0.005:
            raise ValidationError({"refunded_amount": ["Refunded amount cannot exceed the payment amount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_id, customer_id, amount, currency, intent_id, client_secret):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            customer_id=customer_id,
            intent_id=intent_id,
            client_secret=client_secret,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        payment._raise_intent_created(now)
        return payment

    def _raise_intent_created(self, now):
        self.raise_(
            PaymentIntentCreated(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                intent_id=self.intent_id,
                amount=self.amount,
                currency=self.currency,
                created_at=now,
            )
        )

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return PaymentStatus(self.status) in _OUTCOME_TERMINAL

    def _assert_can_transition(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStateTransitionError("Payment", current.value, target.value)

    # -------------------------------------------------------------------
    # Intent management
    # -------------------------------------------------------------------
    def renew_intent(self, intent_id, client_secret, amount) -> None:
        """Replace the intent of a pending or failed payment with a fresh one."""
        if PaymentStatus(self.status) == PaymentStatus.FAILED:
            self._assert_can_transition(PaymentStatus.PENDING)
            self.attempt_count = (self.attempt_count or 1) + 1
        elif PaymentStatus(self.status) != PaymentStatus.PENDING:
            raise InvalidStateTransitionError(
                "Payment", self.status, PaymentStatus.PENDING.value, reason="Payment has already been processed"
            )

        now = datetime.now(UTC)
        self.status = PaymentStatus.PENDING.value
        self.intent_id = intent_id
        self.client_secret = client_secret
        self.amount = amount
        self.failure_reason = None
        self.updated_at = now
        self._raise_intent_created(now)

    def apply_outcome(self, outcome, reason=None) -> bool:
        """Record a gateway outcome. Returns False when it is a duplicate or arrives after a terminal state."""
        outcome = PaymentStatus(outcome)
        if outcome not in (PaymentStatus.SUCCEEDED, PaymentStatus.FAILED):
            raise ValidationError({"status": [f"{outcome.value} is not a gateway outcome"]})
        if self.is_terminal:
            return False

        self._assert_can_transition(outcome)
        now = datetime.now(UTC)
        self.status = outcome.value
        self.updated_at = now
        if outcome == PaymentStatus.SUCCEEDED:
            self.raise_(
                PaymentSucceeded(
                    payment_id=str(self.id),
                    order_id=str(self.order_id),
                    customer_id=str(self.customer_id),
                    intent_id=self.intent_id,
                    amount=self.amount,
                    succeeded_at=now,
                )
            )
        else:
            self.failure_reason = reason
            self.raise_(
                PaymentFailed(
                    payment_id=str(self.id),
                    order_id=str(self.order_id),
                    customer_id=str(self.customer_id),
                    intent_id=self.intent_id,
                    reason=reason,
                    failed_at=now,
                )
            )
        return True

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def refundable_amount(self, requested=None) -> float:
        """Validate a refund request and resolve the amount to refund."""
        if PaymentStatus(self.status) != PaymentStatus.SUCCEEDED:
            raise InvalidStateTransitionError(
                "Payment",
                self.status,
                PaymentStatus.REFUNDED.value,
                reason=f"Only succeeded payments can be refunded, payment is {self.status}",
            )
        amount = self.amount if requested is None else requested
        if amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be greater than zero"]})
        if amount > self.amount + 0.005:
            raise ValidationError({"amount": ["Refund amount cannot exceed the payment amount"]})
        return round(amount, 2)

    def record_refund(self, amount, refund_id) -> None:
        full_refund = abs(amount - self.amount) < 0.005
        target = PaymentStatus.REFUNDED if full_refund else PaymentStatus.PARTIALLY_REFUNDED
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        self.status = target.value
        self.refund_id = refund_id
        self.refunded_amount = amount
        self.refunded_at = now
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                customer_id=str(self.customer_id),
                refund_id=refund_id,
                amount=amount,
                full_refund=full_refund,
                refunded_at=now,
            )
        )
