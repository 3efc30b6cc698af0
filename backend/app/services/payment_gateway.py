"""
Parcel Server - Stripe Payment Gateway
=======================================

What:  Creates Stripe payment intents and hands back the client secret.
How:   The blocking Stripe SDK call runs in Starlette's thread pool, wrapped in
       tenacity retries (transport failures only) and a circuit breaker.
Who:   Built once in the app lifespan, injected into the payment-intent route.

Resilience Strategy:
    1. Retries only on stripe.APIConnectionError (request never reached
       Stripe or the response was lost). One idempotency key is reused for
       every attempt, so Stripe returns the same intent instead of creating a
       second one.
    2. The circuit breaker counts transport / server-side failures. Card
       errors, invalid amounts and bad API keys are the caller's problem and
       never trip it.
    3. Every Stripe rejection becomes GatewayError carrying Stripe's message
       unchanged.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import stripe
from starlette.concurrency import run_in_threadpool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, GatewayError

logger = logging.getLogger(__name__)

# Stripe failures that say nothing about the request itself
TRANSIENT_STRIPE_ERRORS = (
    stripe.APIConnectionError,
    stripe.APIError,
    stripe.RateLimitError,
)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding calls to the payment gateway.

    State Machine:
        CLOSED (normal operation)
            -> On failure: increment failure_count
            -> When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            -> All calls raise CircuitBreakerOpenError immediately
            -> After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            -> Allow the next request through
            -> On success: CLOSED. On failure: back to OPEN.

    Not thread-safe; it is only touched from the event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout has not
            elapsed yet.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Gateway circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = max(int(self.recovery_timeout - elapsed), 1)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Gateway circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Gateway circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Gateway circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Stripe Gateway
# ══════════════════════════════════════════════════════════════════════════

class StripePaymentGateway:
    """
    Thin async facade over stripe.PaymentIntent.create.

    The API key is passed per call instead of through the stripe module
    global, so several gateways (tests, multiple apps) never share state.
    """

    PAYMENT_METHOD_TYPES = ["card"]

    def __init__(
        self,
        api_key: str,
        currency: str = "usd",
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = api_key
        self.currency = currency.lower()
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )
        logger.info(
            "StripePaymentGateway initialized with currency=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.currency,
            self.circuit_breaker.failure_threshold,
            self.circuit_breaker.recovery_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def create_payment_intent(self, amount_in_cents: int) -> str:
        """
        Create a card payment intent and return its client secret.

        Args:
            amount_in_cents: Amount in the smallest currency unit.

        Returns:
            The intent's client_secret, used by Stripe.js to confirm payment.

        Raises:
            CircuitBreakerOpenError: Too many recent gateway failures.
            GatewayError: Stripe rejected the request or stayed unreachable.
        """
        self.circuit_breaker.can_execute()

        idempotency_key = str(uuid.uuid4())
        logger.info(
            "[%s] Creating payment intent: amount=%d %s",
            idempotency_key[:8],
            amount_in_cents,
            self.currency,
        )

        try:
            intent = await self._create_with_retry(
                {
                    "amount": amount_in_cents,
                    "currency": self.currency,
                    "payment_method_types": self.PAYMENT_METHOD_TYPES,
                },
                idempotency_key,
            )
        except TRANSIENT_STRIPE_ERRORS as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Stripe unavailable: %s",
                idempotency_key[:8],
                str(e),
            )
            raise GatewayError(
                message=self._message_of(e),
                gateway_code=getattr(e, "code", None),
                context={"idempotency_key": idempotency_key, "error_type": type(e).__name__},
            )
        except stripe.StripeError as e:
            # Request-level rejection; Stripe itself is healthy
            self.circuit_breaker.record_success()
            logger.warning(
                "[%s] Stripe rejected payment intent: %s",
                idempotency_key[:8],
                self._message_of(e),
            )
            raise GatewayError(
                message=self._message_of(e),
                gateway_code=getattr(e, "code", None),
                context={"idempotency_key": idempotency_key, "error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        logger.info("[%s] Payment intent %s created", idempotency_key[:8], intent.id)
        return intent.client_secret

    @retry(
        retry=retry_if_exception_type(stripe.APIConnectionError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _create_with_retry(self, params: Dict[str, Any], idempotency_key: str) -> Any:
        """Single Stripe call; tenacity re-invokes it on connection errors."""
        start_time = time.time()
        try:
            return await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
                **params,
            )
        finally:
            logger.debug(
                "[%s] Stripe call took %.0fms",
                idempotency_key[:8],
                (time.time() - start_time) * 1000,
            )

    @staticmethod
    def _message_of(error: "stripe.StripeError") -> str:
        """Stripe's human-readable message, without the request-id prefix."""
        return getattr(error, "user_message", None) or str(error) or type(error).__name__
