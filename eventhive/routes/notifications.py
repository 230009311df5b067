import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from eventhive.extensions import db
from eventhive.models import Notification
from eventhive.schemas import notification_schema, notifications_schema
from eventhive.services.notifications import META_TYPES, NotificationKind, NotificationPayload, get_notifier
from eventhive.utils.decorators import current_user_id, is_admin_request

logger = logging.getLogger(__name__)

notifications_bp = Blueprint("notifications", __name__)

NOTIFICATION_PAGE_SIZE = 50


def build_payload(data):
    """NotificationPayload from a request body; raises ValueError on a bad kind or metadata."""
    try:
        kind = NotificationKind(data.get("type") or NotificationKind.GENERAL.value)
    except ValueError:
        raise ValueError(f"Unknown notification type: {data.get('type')}")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("metadata must be an object")

    try:
        if kind is NotificationKind.GENERAL:
            meta = META_TYPES[kind](extra=metadata)
        else:
            meta = META_TYPES[kind](**metadata)
    except TypeError:
        raise ValueError(f"Invalid metadata for {kind.value} notification")

    related_id = data.get("relatedId")
    return NotificationPayload(
        kind=kind,
        message=data["message"],
        meta=meta,
        related_id=str(related_id) if related_id is not None else None,
    )


@notifications_bp.route("/", methods=["POST"])
@jwt_required()
def create_notification():
    data = request.get_json(silent=True) or {}
    if not data.get("message"):
        return jsonify({"error": "Message is required"}), 400

    try:
        payload = build_payload(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    notifier = get_notifier()
    if data.get("isAdminNotification"):
        stored = notifier.notify_admins(payload)
    else:
        if not is_admin_request():
            return jsonify({"error": "Only admins can notify all users"}), 403
        stored = notifier.notify_all_users(payload, exclude_user_id=current_user_id())

    return jsonify({"message": "Notification sent", "recipients": len(stored)}), 201


@notifications_bp.route("/", methods=["GET"])
@jwt_required()
def list_notifications():
    notifications = (
        Notification.query.filter_by(user_id=current_user_id())
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_PAGE_SIZE)
        .all()
    )
    return jsonify(notifications_schema.dump(notifications)), 200


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT"])
@jwt_required()
def mark_read(notification_id):
    notification = Notification.query.filter_by(id=notification_id, user_id=current_user_id()).first()
    if not notification:
        return jsonify({"error": "Notification not found"}), 404

    try:
        notification.mark_as_read()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating notification {notification_id}: {e}")
        return jsonify({"error": "Error updating notification"}), 500

    return jsonify(notification_schema.dump(notification)), 200


@notifications_bp.route("/read-all", methods=["PUT"])
@jwt_required()
def mark_all_read():
    try:
        updated = Notification.query.filter_by(
            user_id=current_user_id(),
            is_read=False,
        ).update({"is_read": True})
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating notifications: {e}")
        return jsonify({"error": "Error updating notifications"}), 500

    return jsonify({"success": True, "updated": updated}), 200
