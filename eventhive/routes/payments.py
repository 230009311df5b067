import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from eventhive.extensions import db
from eventhive.models import Registration
from eventhive.services.notifications import (
    NotificationKind,
    NotificationPayload,
    RegistrationMeta,
    get_notifier,
)
from eventhive.services.payments import PaymentGatewayError, StripeCheckoutGateway, to_minor_units

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__)


# ============= Create Checkout Session =============
@payments_bp.route("/create-checkout-session", methods=["POST"])
def create_checkout_session():
    data = request.get_json(silent=True) or {}
    registration_id = data.get("registrationId")
    if not registration_id:
        return jsonify({"error": "registrationId is required"}), 400

    registration = Registration.query.get(registration_id)
    if not registration:
        return jsonify({"error": "Registration not found"}), 404

    if registration.payment_status != "pending":
        return jsonify({"error": f"Registration is already {registration.payment_status}"}), 400

    event = registration.event
    callback_url = (data.get("callbackUrl") or current_app.config["FRONTEND_URL"]).rstrip("/")
    gateway = StripeCheckoutGateway.from_config()

    try:
        session = gateway.create_session(
            name=event.title,
            description=f"{registration.ticket_quantity} ticket(s) for {event.title}",
            unit_amount=to_minor_units(event.price),
            quantity=registration.ticket_quantity,
            success_url=f"{callback_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{callback_url}/payment-cancel?registration_id={registration.id}",
            metadata={"registration_id": registration.id, "event_id": event.id},
            customer_email=registration.email,
            client_reference_id=registration.id,
        )
    except PaymentGatewayError as e:
        return jsonify({"error": str(e)}), 502

    try:
        registration.checkout_session_id = session["id"]
        registration.payment_method = "card"
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error storing checkout session for registration {registration.id}: {e}")
        return jsonify({"error": "Failed to create checkout session"}), 500

    return jsonify({"id": session["id"], "url": session.get("url")}), 200


# ============= Checkout Callback =============
@payments_bp.route("/verify-session/<session_id>", methods=["GET"])
def verify_session(session_id):
    gateway = StripeCheckoutGateway.from_config()
    try:
        session = gateway.retrieve_session(session_id)
    except PaymentGatewayError as e:
        return jsonify({"success": False, "error": str(e)}), 502

    if session.get("payment_status") != "paid":
        return jsonify({"success": False, "message": "Payment has not been completed"}), 400

    metadata = session.get("metadata") or {}
    registration = None
    if metadata.get("registration_id"):
        registration = Registration.query.get(metadata["registration_id"])
    if registration is None:
        registration = Registration.query.filter_by(checkout_session_id=session_id).first()
    if registration is None:
        return jsonify({"success": False, "error": "Registration not found"}), 404

    if registration.payment_status != "completed":
        try:
            registration.payment_status = "completed"
            registration.transaction_id = session.get("payment_intent") or session_id
            registration.checkout_session_id = session_id
            registration.payment_date = datetime.utcnow()
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error completing registration {registration.id}: {e}")
            return jsonify({"success": False, "error": "Error verifying payment session"}), 500

        logger.info(f"Registration {registration.id} paid via session {session_id}")
        if registration.user_id:
            get_notifier().notify_user(registration.user_id, NotificationPayload(
                kind=NotificationKind.REGISTRATION,
                message=f'Payment received. Your registration for "{registration.event.title}" is confirmed.',
                meta=RegistrationMeta(
                    registration_id=registration.id,
                    event_id=registration.event_id,
                    full_name=registration.full_name,
                    ticket_quantity=registration.ticket_quantity,
                    payment_status=registration.payment_status,
                ),
                related_id=registration.id,
            ))

    return jsonify({
        "success": True,
        "registrationId": registration.id,
        "confirmationCode": registration.confirmation_code,
        "paymentStatus": registration.payment_status,
    }), 200
