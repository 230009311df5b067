import calendar
import logging
from collections import OrderedDict
from datetime import date

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError
from sqlalchemy import or_

from eventhive.extensions import db
from eventhive.models import Event, Review, User
from eventhive.schemas import event_schema, events_schema, reviews_schema
from eventhive.services.analytics import InvalidDateError, to_day
from eventhive.services.notifications import EventMeta, NotificationKind, NotificationPayload, get_notifier
from eventhive.utils.decorators import admin_required, current_user_id

logger = logging.getLogger(__name__)

events_bp = Blueprint("events", __name__)


def can_manage(event, user):
    return bool(user) and (user.is_admin or event.organizer_id == user.id)


@events_bp.route("/", methods=["GET"])
def list_events():
    query = Event.query

    category = request.args.get("category")
    if category:
        query = query.filter(Event.category == category)

    status = request.args.get("status")
    if status:
        query = query.filter(Event.status == status)

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Event.title.ilike(pattern),
            Event.description.ilike(pattern),
            Event.location.ilike(pattern),
        ))

    try:
        if request.args.get("start"):
            query = query.filter(Event.date >= to_day(request.args["start"]))
        if request.args.get("end"):
            query = query.filter(Event.date <= to_day(request.args["end"]))
    except InvalidDateError as e:
        return jsonify({"error": str(e)}), 400

    if request.args.get("upcoming", "").lower() in ("1", "true", "yes"):
        query = query.filter(Event.date >= date.today())

    events = query.order_by(Event.date.asc(), Event.id.asc()).all()
    return jsonify(events_schema.dump(events)), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    reviews = event.reviews.order_by(Review.created_at.desc()).all()
    data = event_schema.dump(event)
    data["reviews"] = reviews_schema.dump(reviews)
    return jsonify(data), 200


@events_bp.route("/byId/<int:event_id>", methods=["GET"])
def get_event_by_id(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404
    return jsonify(event_schema.dump(event)), 200


@events_bp.route("/", methods=["POST"])
@admin_required
def create_event():
    try:
        data = event_schema.load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error": "Invalid event data", "details": err.messages}), 400

    if "is_paid" not in data:
        data["is_paid"] = bool(data.get("price"))

    try:
        event = Event(organizer_id=current_user_id(), **data)
        db.session.add(event)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating event: {e}")
        return jsonify({"error": "Failed to create event"}), 500

    logger.info(f"Event {event.id} created by user {event.organizer_id}")
    get_notifier().notify_all_users(
        NotificationPayload(
            kind=NotificationKind.EVENT,
            message=f'New event: "{event.title}" on {event.date.isoformat()}',
            meta=EventMeta(event_id=event.id, title=event.title),
            related_id=str(event.id),
        ),
        exclude_user_id=event.organizer_id,
    )
    return jsonify(event_schema.dump(event)), 201


@events_bp.route("/<int:event_id>", methods=["PUT"])
@jwt_required()
def update_event(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    if not can_manage(event, User.query.get(current_user_id())):
        return jsonify({"error": "Not authorized"}), 403

    try:
        data = event_schema.load(request.get_json(silent=True) or {}, partial=True)
    except ValidationError as err:
        return jsonify({"error": "Invalid event data", "details": err.messages}), 400

    deadline = data.get("registration_deadline", event.registration_deadline)
    if deadline and deadline > data.get("date", event.date):
        return jsonify({"error": "registrationDeadline must be on or before the event date"}), 400

    try:
        for key, value in data.items():
            setattr(event, key, value)
        db.session.commit()
        return jsonify(event_schema.dump(event)), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating event {event_id}: {e}")
        return jsonify({"error": "Failed to update event"}), 500


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@jwt_required()
def delete_event(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    if not can_manage(event, User.query.get(current_user_id())):
        return jsonify({"error": "Not authorized"}), 403

    try:
        db.session.delete(event)
        db.session.commit()
        logger.info(f"Event {event_id} deleted")
        return jsonify({"message": "Event deleted successfully"}), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting event {event_id}: {e}")
        return jsonify({"error": "Failed to delete event"}), 500


@events_bp.route("/calendar", methods=["GET"])
def calendar_events():
    """Events of one month keyed by ISO day, defaulting to the current month."""
    today = date.today()
    try:
        year = int(request.args.get("year", today.year))
        month = int(request.args.get("month", today.month))
        first = date(year, month, 1)
    except ValueError:
        return jsonify({"error": "Invalid year or month"}), 400

    last = date(year, month, calendar.monthrange(year, month)[1])
    events = (
        Event.query.filter(Event.date >= first, Event.date <= last)
        .order_by(Event.date.asc(), Event.time.asc(), Event.id.asc())
        .all()
    )

    days = OrderedDict()
    for event in events:
        days.setdefault(event.date.isoformat(), []).append(event_schema.dump(event))

    return jsonify({"year": year, "month": month, "days": days}), 200
