import logging
from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from eventhive.extensions import db
from eventhive.models import Event, Registration, User
from eventhive.schemas import payment_update_schema, registration_schema, registrations_schema
from eventhive.services.notifications import (
    NotificationKind,
    NotificationPayload,
    RegistrationMeta,
    get_notifier,
)
from eventhive.utils.decorators import admin_required, current_user_id, optional_identity

logger = logging.getLogger(__name__)

registrations_bp = Blueprint("registrations", __name__)


def first_error(messages):
    """First human readable message out of a marshmallow error dict."""
    for value in messages.values():
        if isinstance(value, dict):
            return first_error(value)
        if isinstance(value, list) and value:
            return str(value[0])
        return str(value)
    return "Invalid data"


def is_organizer_or_admin(user, event):
    return bool(user) and (user.is_admin or event.organizer_id == user.id)


def can_access(user, registration):
    if not user:
        return False
    return is_organizer_or_admin(user, registration.event) or registration.user_id == user.id


def capacity_error(event, quantity):
    if not event.registration_open:
        return "Registration is closed for this event"

    remaining = event.tickets_remaining
    if remaining is not None and quantity > remaining:
        return f"Only {remaining} tickets remaining for this event"

    if event.max_registrations is not None:
        active = event.registrations.filter(
            Registration.payment_status.notin_(("failed", "refunded"))
        ).count()
        if active >= event.max_registrations:
            return "This event has reached its maximum number of registrations"
    return None


@registrations_bp.route("/", methods=["POST"])
def create_registration():
    try:
        data = registration_schema.load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error": first_error(err.messages), "details": err.messages}), 400

    event = Event.query.get(data["event_id"])
    if not event:
        return jsonify({"error": "Event not found"}), 404

    quantity = data.get("ticket_quantity", 1)
    error = capacity_error(event, quantity)
    if error:
        return jsonify({"error": error}), 400

    price = float(event.price or 0)
    if event.is_paid and price > 0:
        payment_status = "pending"
        total_amount = round(price * quantity, 2)
    else:
        payment_status = "free"
        total_amount = 0

    try:
        registration = Registration(
            event_id=event.id,
            user_id=optional_identity(),
            full_name=data["full_name"],
            email=data["email"],
            phone=data["phone"],
            address=data.get("address"),
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zip_code"),
            special_requirements=data.get("special_requirements"),
            ticket_quantity=quantity,
            payment_status=payment_status,
            total_amount=total_amount,
            payment_method=data.get("payment_method"),
        )
        db.session.add(registration)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating registration: {e}")
        return jsonify({"error": "Registration failed"}), 500

    logger.info(f"Registration {registration.id} created for event {event.id}")

    if event.organizer_id:
        get_notifier().notify_user(
            event.organizer_id,
            NotificationPayload(
                kind=NotificationKind.REGISTRATION,
                message=f'New registration from {registration.full_name} for your event "{event.title}"',
                meta=RegistrationMeta(
                    registration_id=registration.id,
                    event_id=event.id,
                    full_name=registration.full_name,
                    ticket_quantity=registration.ticket_quantity,
                    payment_status=registration.payment_status,
                ),
                related_id=registration.id,
            ),
            event_name="notification",
        )

    return jsonify({
        "message": "Registration successful",
        "id": registration.id,
        "confirmationCode": registration.confirmation_code,
        "paymentStatus": registration.payment_status,
        "totalAmount": float(registration.total_amount),
    }), 201


@registrations_bp.route("/<registration_id>/payment", methods=["PUT"])
@jwt_required()
def update_payment(registration_id):
    registration = Registration.query.get(registration_id)
    if not registration:
        return jsonify({"error": "Registration not found"}), 404

    if not is_organizer_or_admin(User.query.get(current_user_id()), registration.event):
        return jsonify({"error": "Not authorized"}), 403

    try:
        data = payment_update_schema.load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error": first_error(err.messages), "details": err.messages}), 400

    try:
        registration.payment_status = data["payment_status"]
        if "payment_method" in data:
            registration.payment_method = data["payment_method"]
        if "transaction_id" in data:
            registration.transaction_id = data["transaction_id"]
        registration.payment_date = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating payment status for {registration_id}: {e}")
        return jsonify({"error": "Failed to update payment status"}), 500

    return jsonify({
        "message": "Payment status updated",
        "registration": {
            "id": registration.id,
            "paymentStatus": registration.payment_status,
            "confirmationCode": registration.confirmation_code,
        },
    }), 200


@registrations_bp.route("/event/<int:event_id>", methods=["GET"])
@jwt_required()
def event_registrations(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    if not is_organizer_or_admin(User.query.get(current_user_id()), event):
        return jsonify({"error": "Not authorized"}), 403

    registrations = event.registrations.order_by(Registration.registration_date.desc()).all()
    return jsonify(registrations_schema.dump(registrations)), 200


@registrations_bp.route("/user/me", methods=["GET"])
@jwt_required()
def my_registrations():
    registrations = (
        Registration.query.filter_by(user_id=current_user_id())
        .order_by(Registration.registration_date.desc())
        .all()
    )
    return jsonify(registrations_schema.dump(registrations)), 200


@registrations_bp.route("/all", methods=["GET"])
@admin_required
def all_registrations():
    registrations = Registration.query.order_by(Registration.registration_date.desc()).all()
    return jsonify(registrations_schema.dump(registrations)), 200


@registrations_bp.route("/<registration_id>", methods=["GET"])
@jwt_required()
def get_registration(registration_id):
    registration = Registration.query.get(registration_id)
    if not registration:
        return jsonify({"error": "Registration not found"}), 404

    if not can_access(User.query.get(current_user_id()), registration):
        return jsonify({"error": "Not authorized"}), 403

    return jsonify(registration_schema.dump(registration)), 200


@registrations_bp.route("/<registration_id>/check-in", methods=["PUT"])
@jwt_required()
def check_in(registration_id):
    registration = Registration.query.get(registration_id)
    if not registration:
        return jsonify({"error": "Registration not found"}), 404

    if not is_organizer_or_admin(User.query.get(current_user_id()), registration.event):
        return jsonify({"error": "Not authorized"}), 403

    data = request.get_json(silent=True) or {}
    status = data.get("checkInStatus", True)

    try:
        registration.check_in(status)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating check-in status for {registration_id}: {e}")
        return jsonify({"error": "Failed to update check-in status"}), 500

    return jsonify({
        "message": "Check-in successful" if registration.check_in_status else "Check-out successful",
        "registration": {
            "id": registration.id,
            "checkInStatus": registration.check_in_status,
            "checkInTime": registration.check_in_time.isoformat() if registration.check_in_time else None,
        },
    }), 200


@registrations_bp.route("/<registration_id>", methods=["DELETE"])
@jwt_required()
def cancel_registration(registration_id):
    registration = Registration.query.get(registration_id)
    if not registration:
        return jsonify({"error": "Registration not found"}), 404

    if not can_access(User.query.get(current_user_id()), registration):
        return jsonify({"error": "Not authorized"}), 403

    try:
        db.session.delete(registration)
        db.session.commit()
        logger.info(f"Registration {registration_id} cancelled")
        return jsonify({"message": "Registration cancelled successfully"}), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error cancelling registration {registration_id}: {e}")
        return jsonify({"error": "Failed to cancel registration"}), 500
