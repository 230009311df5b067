from unittest import mock

import pytest
import requests

from eventhive.extensions import db
from eventhive.models import Notification, Registration
from eventhive.services.payments import PaymentGatewayError, StripeCheckoutGateway, to_minor_units
from helpers import auth_headers


def stripe_response(body):
    response = mock.Mock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def stripe():
    with mock.patch("eventhive.services.payments.requests.request") as request:
        yield request


@pytest.fixture
def pending_registration(client, paid_event, user):
    resp = client.post(
        "/registrations/",
        json={
            "eventId": paid_event.id,
            "fullName": "Alice Doe",
            "email": "alice@example.com",
            "phone": "9876543210",
            "ticketQuantity": 2,
        },
        headers=auth_headers(user),
    )
    return db.session.get(Registration, resp.get_json()["id"])


class TestGateway:

    def test_minor_units(self):
        assert to_minor_units(25) == 2500
        assert to_minor_units("19.99") == 1999

    def test_create_session_form_fields(self, app, stripe):
        stripe.return_value = stripe_response({"id": "cs_1"})
        StripeCheckoutGateway("sk_test", "https://stripe.test/v1/").create_session(
            name="Jazz Night",
            description="2 ticket(s)",
            unit_amount=2500,
            quantity=2,
            success_url="https://app/ok",
            cancel_url="https://app/cancel",
            metadata={"registration_id": "abc"},
        )
        method, url = stripe.call_args.args
        data = stripe.call_args.kwargs["data"]
        assert (method, url) == ("POST", "https://stripe.test/v1/checkout/sessions")
        assert data["line_items[0][price_data][unit_amount]"] == 2500
        assert data["metadata[registration_id]"] == "abc"
        assert stripe.call_args.kwargs["auth"] == ("sk_test", "")

    def test_unconfigured(self, app):
        with pytest.raises(PaymentGatewayError):
            StripeCheckoutGateway("", "https://stripe.test/v1").retrieve_session("cs_1")


class TestCheckoutSession:

    def test_creates_and_stores_session(self, client, stripe, pending_registration):
        stripe.return_value = stripe_response({"id": "cs_test_123", "url": "https://checkout.test/cs_test_123"})

        resp = client.post("/stripe/create-checkout-session", json={
            "registrationId": pending_registration.id,
            "callbackUrl": "https://eventhive.test/",
        })
        assert resp.status_code == 200
        assert resp.get_json() == {"id": "cs_test_123", "url": "https://checkout.test/cs_test_123"}
        assert pending_registration.checkout_session_id == "cs_test_123"
        assert pending_registration.payment_method == "card"

        data = stripe.call_args.kwargs["data"]
        assert data["line_items[0][quantity]"] == 2
        assert data["success_url"].startswith("https://eventhive.test/payment-success")

    def test_free_registration_rejected(self, client, stripe, event):
        resp = client.post("/registrations/", json={
            "eventId": event.id, "fullName": "Bob", "email": "bob@example.com", "phone": "9876543210",
        })
        resp = client.post("/stripe/create-checkout-session", json={"registrationId": resp.get_json()["id"]})
        assert resp.status_code == 400
        stripe.assert_not_called()

    def test_unknown_registration(self, client, stripe):
        assert client.post("/stripe/create-checkout-session", json={"registrationId": "nope"}).status_code == 404

    def test_gateway_failure(self, client, stripe, pending_registration):
        stripe.side_effect = requests.ConnectionError("stripe unreachable")
        resp = client.post("/stripe/create-checkout-session", json={"registrationId": pending_registration.id})
        assert resp.status_code == 502
        assert pending_registration.checkout_session_id is None


class TestVerifySession:

    def test_paid_session_completes_registration(self, client, stripe, pending_registration, user):
        stripe.return_value = stripe_response({
            "id": "cs_test_123",
            "payment_status": "paid",
            "payment_intent": "pi_42",
            "metadata": {"registration_id": pending_registration.id},
        })

        resp = client.get("/stripe/verify-session/cs_test_123")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["paymentStatus"] == "completed"
        assert pending_registration.transaction_id == "pi_42"
        assert pending_registration.payment_date is not None
        assert Notification.query.filter_by(user_id=user.id, kind="registration").count() == 1

    def test_falls_back_to_session_id(self, client, stripe, pending_registration):
        pending_registration.checkout_session_id = "cs_test_9"
        db.session.commit()
        stripe.return_value = stripe_response({"id": "cs_test_9", "payment_status": "paid", "metadata": {}})

        resp = client.get("/stripe/verify-session/cs_test_9")
        assert resp.get_json()["registrationId"] == pending_registration.id
        assert pending_registration.transaction_id == "cs_test_9"

    def test_verifying_twice_notifies_once(self, client, stripe, pending_registration, user):
        stripe.return_value = stripe_response({
            "payment_status": "paid",
            "metadata": {"registration_id": pending_registration.id},
        })
        client.get("/stripe/verify-session/cs_x")
        client.get("/stripe/verify-session/cs_x")
        assert Notification.query.filter_by(user_id=user.id, kind="registration").count() == 1

    def test_unpaid_session(self, client, stripe, pending_registration):
        stripe.return_value = stripe_response({"payment_status": "unpaid", "metadata": {}})
        resp = client.get("/stripe/verify-session/cs_test_123")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False
        assert pending_registration.payment_status == "pending"

    def test_gateway_failure(self, client, stripe):
        stripe.side_effect = requests.Timeout("slow")
        assert client.get("/stripe/verify-session/cs_test_123").status_code == 502
