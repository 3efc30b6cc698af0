"""
Parcel Server - Payment Gateway Unit Tests (Mocked)
====================================================

What:  CircuitBreaker and StripePaymentGateway with the Stripe SDK patched.
How:   stripe.PaymentIntent.create is replaced by a MagicMock; tenacity's
       sleep is replaced so retries do not wait.

What we test:
    ✅ Circuit breaker state machine
    ✅ Successful intent creation returns the client secret
    ✅ Connection errors are retried with the same idempotency key
    ✅ Request errors are not retried and do not trip the breaker
    ✅ Repeated outages open the circuit
    ❌ Real Stripe calls
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe

from app.exceptions import CircuitBreakerOpenError, GatewayError
from app.services.payment_gateway import CircuitBreaker, StripePaymentGateway

STRIPE_CREATE = "app.services.payment_gateway.stripe.PaymentIntent.create"


@pytest.fixture(autouse=True)
def no_retry_sleep():
    with patch.object(StripePaymentGateway._create_with_retry.retry, "sleep", new=AsyncMock()):
        yield


def _intent(secret="pi_123_secret_456"):
    return MagicMock(id="pi_123", client_secret=secret)


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_opens_at_threshold_and_rejects(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()

        assert cb.state == "open"
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 1 <= exc_info.value.recovery_time <= 60

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_failure_in_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN

        cb.record_failure()
        assert cb.state == "open"

    def test_success_after_half_open_closes(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)
        cb.can_execute()

        cb.record_success()
        assert cb.state == "closed"
        assert cb.failure_count == 0


class TestStripePaymentGateway:

    def setup_method(self):
        self.gateway = StripePaymentGateway(
            api_key="sk_test_123",
            currency="USD",
            circuit_breaker=CircuitBreaker(failure_threshold=2, recovery_timeout=60),
        )

    @pytest.mark.asyncio
    async def test_create_payment_intent_success(self):
        with patch(STRIPE_CREATE, return_value=_intent()) as create:
            secret = await self.gateway.create_payment_intent(15000)

        assert secret == "pi_123_secret_456"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 15000
        assert kwargs["currency"] == "usd"
        assert kwargs["payment_method_types"] == ["card"]
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["idempotency_key"]

    @pytest.mark.asyncio
    async def test_connection_error_is_retried_with_same_idempotency_key(self):
        side_effect = [stripe.APIConnectionError("Network is unreachable"), _intent()]
        with patch(STRIPE_CREATE, side_effect=side_effect) as create:
            secret = await self.gateway.create_payment_intent(5000)

        assert secret == "pi_123_secret_456"
        assert create.call_count == 2
        keys = {call.kwargs["idempotency_key"] for call in create.call_args_list}
        assert len(keys) == 1
        assert self.gateway.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_invalid_request_is_not_retried_and_keeps_message(self):
        error = stripe.InvalidRequestError(
            "Amount must be at least $0.50 usd", "amount", code="amount_too_small"
        )
        with patch(STRIPE_CREATE, side_effect=error) as create:
            with pytest.raises(GatewayError) as exc_info:
                await self.gateway.create_payment_intent(10)

        assert create.call_count == 1
        assert exc_info.value.message == "Amount must be at least $0.50 usd"
        assert exc_info.value.gateway_code == "amount_too_small"
        assert self.gateway.circuit_breaker.state == "closed"
        assert self.gateway.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_repeated_outage_opens_circuit(self):
        with patch(STRIPE_CREATE, side_effect=stripe.APIError("Stripe is down")) as create:
            for _ in range(2):
                with pytest.raises(GatewayError):
                    await self.gateway.create_payment_intent(1000)

            with pytest.raises(CircuitBreakerOpenError):
                await self.gateway.create_payment_intent(1000)

        # APIError is not retried; the third call never reached Stripe
        assert create.call_count == 2
        assert self.gateway.circuit_breaker.state == "open"

    @pytest.mark.asyncio
    async def test_connection_errors_exhaust_retries(self):
        with patch(STRIPE_CREATE, side_effect=stripe.APIConnectionError("timeout")) as create:
            with pytest.raises(GatewayError):
                await self.gateway.create_payment_intent(1000)

        assert create.call_count == 3
        assert self.gateway.circuit_breaker.failure_count == 1

    def test_is_configured(self):
        assert self.gateway.is_configured is True
        assert StripePaymentGateway(api_key="").is_configured is False
