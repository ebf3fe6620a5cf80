# services/stripe_client.py
"""
Stripe access for card payments.

Payment intents are created with the Stripe SDK; webhook events are
verified against the endpoint secret with stripe.Webhook before anything
in the database is touched.
"""
import logging
from decimal import Decimal
from typing import Dict, Optional

import stripe

logger = logging.getLogger(__name__)


class StripeError(Exception):
     pass


class WebhookError(Exception):
     """A webhook request that must be rejected (400)."""
     pass


class StripeClient:
     def __init__(self, secret_key: Optional[str], currency: str = "usd"):
          self.secret_key = secret_key
          self.currency = currency

     def create_payment_intent(self, amount: Decimal, metadata: Dict[str, object]):
          """
          Create a payment intent for `amount` (major units).

          Returns:
               The Stripe PaymentIntent; `id` and `client_secret` are used.
          """
          if not self.secret_key:
               raise StripeError("STRIPE_SECRET_KEY is not set")

          try:
               return stripe.PaymentIntent.create(
                    api_key=self.secret_key,
                    amount=int((Decimal(str(amount)) * 100).quantize(Decimal("1"))),
                    currency=self.currency,
                    automatic_payment_methods={"enabled": True},
                    metadata={key: str(value) for key, value in metadata.items() if value is not None},
               )
          except stripe.StripeError as e:
               logger.error("Stripe payment intent failed: %s", e)
               raise StripeError(f"Stripe error: {e.user_message or e}")


def construct_webhook_event(payload: bytes, signature: Optional[str], secret: Optional[str]):
     """
     Verify the Stripe-Signature header and parse the event.

     Raises:
          WebhookError: no endpoint secret configured, missing or bad
          signature, or a body that is not a Stripe event
     """
     if not secret:
          logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
          raise WebhookError("Webhook secret not configured")
     if not signature:
          raise WebhookError("Missing Stripe-Signature header")
     try:
          return stripe.Webhook.construct_event(payload, signature, secret)
     except ValueError:
          raise WebhookError("Invalid payload")
     except stripe.SignatureVerificationError:
          raise WebhookError("Invalid signature")
