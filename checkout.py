# checkout.py
import asyncio
import logging
from functools import partial
from typing import Optional

import stripe

log = logging.getLogger("roaster.checkout")

PRODUCT_NAME = "Premium Roast (1 credit)"
CURRENCY = "eur"
UNIT_AMOUNT_CENTS = 199  # €1.99


class CheckoutError(Exception):
    """Stripe rejected or failed a checkout call."""


class CheckoutNotConfigured(CheckoutError):
    pass


class CheckoutGateway:
    """
    Thin wrapper over Stripe Checkout. Nothing is stored locally: every
    verification re-reads the session from Stripe.
    """

    def __init__(self, secret_key: Optional[str]):
        self.secret_key = secret_key or None

    @property
    def configured(self) -> bool:
        return self.secret_key is not None

    def _require_key(self) -> str:
        if not self.secret_key:
            raise CheckoutNotConfigured("Stripe secret key is not set")
        return self.secret_key

    async def _call(self, fn, *args, **kwargs):
        # stripe-python is blocking; keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def create_session(self, success_url: str, cancel_url: str) -> str:
        key = self._require_key()
        try:
            session = await self._call(
                stripe.checkout.Session.create,
                api_key=key,
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": CURRENCY,
                        "product_data": {"name": PRODUCT_NAME},
                        "unit_amount": UNIT_AMOUNT_CENTS,
                    },
                    "quantity": 1,
                }],
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            log.error("checkout session create failed: %s", exc)
            raise CheckoutError(str(exc)) from exc
        log.info("checkout session created: %s", session.id)
        return session.url

    async def is_paid(self, session_id: str) -> bool:
        key = self._require_key()
        try:
            session = await self._call(stripe.checkout.Session.retrieve, session_id, api_key=key)
        except stripe.InvalidRequestError as exc:
            # unknown or malformed id
            log.info("checkout session %s not found: %s", session_id, exc)
            return False
        except stripe.StripeError as exc:
            log.error("checkout session retrieve failed: %s", exc)
            raise CheckoutError(str(exc)) from exc
        return session is not None and session.payment_status == "paid"
