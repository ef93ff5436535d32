"""Stripe service - card payments and refunds through the Stripe API"""

import logging
from typing import Optional

import stripe

from ...config import STRIPE_CURRENCY, STRIPE_SECRET_KEY
from ...shared.formatting import convert_to_usd

logger = logging.getLogger(__name__)

# Stripe only accepts these values, free-text reasons stay on the Payment record
STRIPE_REFUND_REASONS = ("duplicate", "fraudulent", "requested_by_customer")


class StripeService:
    """Service for Stripe API operations"""

    def __init__(self, api_key: Optional[str] = STRIPE_SECRET_KEY):
        self.api_key = api_key
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; card payment endpoints will fail until configured")

    def is_available(self) -> bool:
        """Check if Stripe is configured"""
        return bool(self.api_key)

    def _require_client(self):
        if not self.api_key:
            raise Exception("Stripe is not configured. Please check environment variables.")

    def create_payment_intent(self, amount: float, currency: str, metadata: Optional[dict] = None):
        """
        Create a PaymentIntent for a booking.

        Stripe does not settle LKR, so LKR amounts are converted to USD
        before being sent in cents.
        """
        self._require_client()

        charge_amount = convert_to_usd(amount) if currency.upper() == "LKR" else amount
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=int(round(charge_amount * 100)),
                currency=STRIPE_CURRENCY,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
            )
            logger.info(f"✅ Stripe payment intent created: {intent['id']}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe payment intent creation failed: {e}")
            raise

    def retrieve_payment_intent(self, payment_intent_id: str):
        self._require_client()
        return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)

    def create_refund(self, charge_id: str, amount: float, currency: str = "LKR", reason: Optional[str] = None):
        """Refund part or all of a charge, amount in major units of the payment currency"""
        self._require_client()

        refund_amount = convert_to_usd(amount) if currency.upper() == "LKR" else amount
        try:
            refund = stripe.Refund.create(
                api_key=self.api_key,
                charge=charge_id,
                amount=int(round(refund_amount * 100)),
                reason=reason if reason in STRIPE_REFUND_REASONS else "requested_by_customer",
            )
            logger.info(f"✅ Stripe refund created: {refund['id']} for charge {charge_id}")
            return refund
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe refund failed for charge {charge_id}: {e}")
            raise
