"""Dodo Payments service - Integration with Dodo Payments API"""

import logging
from typing import Any, Optional

from dodopayments import AsyncDodoPayments  # type: ignore

from ...config import DODO_PAYMENTS_API_KEY, DODO_PAYMENTS_ENVIRONMENT

logger = logging.getLogger(__name__)


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def response_field(response: Any, *names: str) -> Any:
    """Read a field from an SDK model or a plain dict, trying each name in order"""
    for name in names:
        value = getattr(response, name, None)
        if value is None and isinstance(response, dict):
            value = response.get(name)
        if value is not None:
            return value
    return None


class BillingUnavailableError(Exception):
    """Raised when the Dodo client is not configured"""


class DodoPaymentsService:
    """Service for Dodo Payments API operations"""

    def __init__(self):
        self.api_key = DODO_PAYMENTS_API_KEY
        self.environment = normalize_dodo_environment(DODO_PAYMENTS_ENVIRONMENT)
        self.client = None

        if not self.api_key:
            logger.warning(
                "DODO_PAYMENTS_API_KEY not set; billing endpoints will fail until configured"
            )
        else:
            try:
                self.client = AsyncDodoPayments(
                    bearer_token=self.api_key,
                    environment=self.environment,
                )
                logger.info(f"Dodo Payments client initialized (env={self.environment})")
            except Exception as e:
                logger.error(f"Failed to initialize Dodo client (env={self.environment}): {e}")
                self.client = None

    def is_available(self) -> bool:
        """Check if Dodo Payments client is available"""
        return self.client is not None

    def _require_client(self):
        if not self.client:
            raise BillingUnavailableError("Dodo Payments client not initialized")
        return self.client

    async def create_checkout_session(
        self,
        product_id: str,
        customer_email: str,
        customer_name: str,
        return_url: str,
        metadata: Optional[dict] = None,
        discount_code: Optional[str] = None,
    ) -> dict:
        """Create a subscription checkout session. Returns checkout_url and session_id."""
        client = self._require_client()

        params = {
            "product_cart": [{"product_id": product_id, "quantity": 1}],
            "customer": {"email": customer_email, "name": customer_name},
            "return_url": return_url,
            "metadata": metadata or {},
        }
        if discount_code:
            params["discount_code"] = discount_code

        try:
            session = await client.checkout_sessions.create(**params)
        except Exception as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise

        return {
            "checkout_url": response_field(session, "checkout_url", "url"),
            "session_id": response_field(session, "session_id", "id"),
        }

    async def cancel_subscription(self, subscription_id: str, immediate: bool = False) -> Any:
        """
        Cancel a subscription.

        immediate=True ends it now; otherwise it is scheduled for the next billing date
        and Dodo sends 'subscription.cancelled' when it takes effect.
        """
        client = self._require_client()
        try:
            if immediate:
                return await client.subscriptions.update(
                    subscription_id=subscription_id, status="cancelled"
                )
            return await client.subscriptions.update(
                subscription_id=subscription_id, cancel_at_next_billing_date=True
            )
        except Exception as e:
            logger.error(f"Failed to cancel subscription {subscription_id}: {e}")
            raise

    async def change_plan(
        self,
        subscription_id: str,
        product_id: str,
        proration_billing_mode: str = "prorated_immediately",
    ) -> Any:
        """Move a subscription to another product"""
        client = self._require_client()
        try:
            return await client.subscriptions.change_plan(
                subscription_id=subscription_id,
                product_id=product_id,
                quantity=1,
                proration_billing_mode=proration_billing_mode,
            )
        except Exception as e:
            logger.error(f"Failed to change plan for subscription {subscription_id}: {e}")
            raise


# Singleton instance
dodo_service = DodoPaymentsService()
