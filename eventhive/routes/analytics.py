import logging
from datetime import date, timedelta

from flask import Blueprint, jsonify, request

from eventhive.extensions import db
from eventhive.models import Event, EventAnalytics, Review
from eventhive.schemas import event_summary_schema
from eventhive.services import sentiment as sentiment_service
from eventhive.services.analytics import (
    ENGAGEMENT_WINDOW_DAYS,
    InvalidDateError,
    analytics_to_dict,
    build_time_series,
    get_or_create_analytics,
    refresh_event_analytics,
    to_day,
)
from eventhive.utils.decorators import admin_required

logger = logging.getLogger(__name__)

analytics_bp = Blueprint("analytics", __name__)


@analytics_bp.route("/", methods=["GET"])
@admin_required
def all_analytics():
    rows = EventAnalytics.query.join(Event).order_by(Event.date.desc()).all()
    return jsonify([
        {**analytics_to_dict(row), "event": event_summary_schema.dump(row.event)}
        for row in rows
    ]), 200


@analytics_bp.route("/<int:event_id>", methods=["GET"])
def event_analytics(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    try:
        analytics = refresh_event_analytics(event)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error fetching analytics for event {event_id}: {e}")
        return jsonify({"error": "Failed to fetch analytics"}), 500

    return jsonify({
        "event": event_summary_schema.dump(event),
        "analytics": analytics_to_dict(analytics),
    }), 200


@analytics_bp.route("/<int:event_id>/timeseries", methods=["GET"])
def event_timeseries(event_id):
    """Daily sentiment score and review volume; defaults to the last 30 days."""
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    try:
        end = to_day(request.args["end"]) if request.args.get("end") else date.today()
        start = (
            to_day(request.args["start"]) if request.args.get("start")
            else end - timedelta(days=ENGAGEMENT_WINDOW_DAYS - 1)
        )
    except InvalidDateError as e:
        return jsonify({"error": str(e)}), 400

    reviews = Review.query.filter_by(event_id=event_id).all()
    series = build_time_series(reviews, start, end)
    return jsonify({
        "eventId": event.id,
        "start": start.isoformat(),
        "end": end.isoformat(),
        **series,
    }), 200


@analytics_bp.route("/<int:event_id>/insights", methods=["POST"])
@admin_required
def regenerate_insights(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    try:
        analytics = get_or_create_analytics(event)
        reviews = Review.query.filter_by(event_id=event_id).all()
        insights = sentiment_service.analyze_reviews(event.title, reviews)["insights"]
        analytics.ai_insights = insights
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error generating insights for event {event_id}: {e}")
        return jsonify({"error": "Failed to generate insights"}), 500

    return jsonify({"message": "AI insights generated successfully", "insights": insights}), 200
