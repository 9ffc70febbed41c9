"""
Payment provider adapters.

The settlement core only needs three things from a provider: create a transfer, refund a
payment and report the processing fee of a payment. Stripe is used when a secret key is
configured; otherwise a deterministic development provider stands in.
"""

import asyncio
import json
from decimal import Decimal
from typing import Any, Protocol

import stripe

from prizepool.config import config
from prizepool.utils.logging import logger
from prizepool.utils.money import from_minor_units
from prizepool.utils.types import JsonDict


class PaymentProviderError(Exception):
    pass


class WebhookSignatureError(PaymentProviderError):
    pass


class PaymentProvider(Protocol):
    async def create_transfer(
        self, destination: str, amount_minor_units: int, idempotency_key: str
    ) -> str: ...

    async def create_refund(self, payment_reference: str) -> None: ...

    async def get_processing_fee(self, payment_reference: str) -> Decimal | None: ...

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> JsonDict: ...


class DevPaymentProvider:
    """Accepts everything and returns references derived from its input."""

    async def create_transfer(
        self, destination: str, amount_minor_units: int, idempotency_key: str
    ) -> str:
        logger.info(f"[dev] transfer of {amount_minor_units} to {destination} ({idempotency_key})")
        return f"dev-transfer-{idempotency_key}"

    async def create_refund(self, payment_reference: str) -> None:
        logger.info(f"[dev] refund of {payment_reference}")

    async def get_processing_fee(self, payment_reference: str) -> Decimal | None:
        return None

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> JsonDict:
        try:
            event: JsonDict = json.loads(payload)
        except ValueError as exc:
            raise WebhookSignatureError("Webhook payload is not valid JSON") from exc
        return event


class StripePaymentProvider:
    def __init__(self, secret_key: str, webhook_secret: str | None, currency: str) -> None:
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    async def create_transfer(
        self, destination: str, amount_minor_units: int, idempotency_key: str
    ) -> str:
        try:
            transfer = await asyncio.to_thread(
                stripe.Transfer.create,
                amount=amount_minor_units,
                currency=self.currency,
                destination=destination,
                idempotency_key=idempotency_key,
                api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            raise PaymentProviderError(str(exc)) from exc
        return str(transfer.id)

    async def create_refund(self, payment_reference: str) -> None:
        try:
            await asyncio.to_thread(
                stripe.Refund.create,
                payment_intent=payment_reference,
                idempotency_key=f"refund-{payment_reference}",
                api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            raise PaymentProviderError(str(exc)) from exc

    async def get_processing_fee(self, payment_reference: str) -> Decimal | None:
        try:
            payment_intent: Any = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve,
                payment_reference,
                expand=["latest_charge.balance_transaction"],
                api_key=self.secret_key,
            )
        except stripe.StripeError as exc:
            logger.warning(f"Could not retrieve processing fee for {payment_reference}: {exc}")
            return None

        charge = getattr(payment_intent, "latest_charge", None)
        balance_transaction = getattr(charge, "balance_transaction", None)
        fee = getattr(balance_transaction, "fee", None)
        return from_minor_units(int(fee)) if fee is not None else None

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> JsonDict:
        if self.webhook_secret is None or signature is None:
            raise WebhookSignatureError("Missing webhook signature")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise WebhookSignatureError("Invalid webhook signature") from exc
        event: JsonDict = json.loads(payload)
        return event


def get_payment_provider() -> PaymentProvider:
    if config.stripe_secret_key is None:
        return DevPaymentProvider()
    return StripePaymentProvider(
        config.stripe_secret_key, config.stripe_webhook_secret, config.payout_currency
    )
