import logging
import requests
from flask import current_app

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


class PaymentGatewayError(Exception):
    pass


# ============= Stripe Checkout =============
class StripeCheckoutGateway:
    """Hosted checkout sessions over the Stripe REST API"""

    def __init__(self, secret_key, api_base, currency="usd"):
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency

    @classmethod
    def from_config(cls, config=None):
        config = config or current_app.config
        return cls(
            secret_key=config["STRIPE_SECRET_KEY"],
            api_base=config["STRIPE_API_BASE"],
            currency=config.get("STRIPE_CURRENCY", "usd"),
        )

    def _request(self, method, path, data=None):
        if not self.secret_key:
            raise PaymentGatewayError("Payment provider is not configured")
        try:
            response = requests.request(
                method,
                f"{self.api_base}{path}",
                data=data,
                auth=(self.secret_key, ""),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Stripe {method} {path} failed: {e}")
            raise PaymentGatewayError("Payment provider request failed") from e

    def create_session(self, *, name, description, unit_amount, quantity, success_url, cancel_url,
                       metadata=None, customer_email=None, client_reference_id=None):
        """Create a checkout session; unit_amount is in the smallest currency unit."""
        data = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][product_data][name]": name,
            "line_items[0][price_data][product_data][description]": description,
            "line_items[0][price_data][unit_amount]": int(unit_amount),
            "line_items[0][quantity]": int(quantity),
        }
        if customer_email:
            data["customer_email"] = customer_email
        if client_reference_id:
            data["client_reference_id"] = client_reference_id
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)

        session = self._request("POST", "/checkout/sessions", data=data)
        logger.info(f"Checkout session created: {session.get('id')}")
        return session

    def retrieve_session(self, session_id):
        return self._request("GET", f"/checkout/sessions/{session_id}")


def to_minor_units(amount):
    return int(round(float(amount) * 100))
