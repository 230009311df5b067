# eventhive/routes/dashboard.py

from datetime import date
from flask import Blueprint, jsonify
from sqlalchemy import func

from eventhive.extensions import db
from eventhive.models import Event, Registration, Review, User
from eventhive.schemas import events_schema, reviews_schema
from eventhive.utils.decorators import admin_required

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/", methods=["GET"])
@admin_required
def dashboard():
    # ==================== Counts ====================
    total_users = User.query.count()
    admins_count = User.query.filter_by(is_admin=True).count()
    total_events = Event.query.count()
    upcoming_events = Event.query.filter(Event.date >= date.today(), Event.status == "active").count()
    total_reviews = Review.query.count()
    total_registrations = Registration.query.count()

    # ==================== Revenue ====================
    revenue = (
        db.session.query(func.coalesce(func.sum(Registration.total_amount), 0))
        .filter(Registration.payment_status == "completed")
        .scalar()
    )

    # ==================== Ratings & Sentiment ====================
    average_rating = db.session.query(func.avg(Review.rating)).scalar()
    sentiment_rows = (
        db.session.query(Review.sentiment, func.count(Review.id))
        .group_by(Review.sentiment)
        .all()
    )
    sentiment = {"positive": 0, "neutral": 0, "negative": 0}
    for label, count in sentiment_rows:
        sentiment[label if label in sentiment else "neutral"] += count

    # ==================== Breakdowns ====================
    registrations_by_status = dict(
        db.session.query(Registration.payment_status, func.count(Registration.id))
        .group_by(Registration.payment_status)
        .all()
    )
    events_by_status = dict(
        db.session.query(Event.status, func.count(Event.id))
        .group_by(Event.status)
        .all()
    )

    # ==================== Recent Activity ====================
    recent_reviews = Review.query.order_by(Review.created_at.desc()).limit(5).all()
    next_events = (
        Event.query.filter(Event.date >= date.today(), Event.status == "active")
        .order_by(Event.date.asc())
        .limit(5)
        .all()
    )

    return jsonify({
        "stats": {
            "totalUsers": total_users,
            "admins": admins_count,
            "totalEvents": total_events,
            "upcomingEvents": upcoming_events,
            "totalReviews": total_reviews,
            "totalRegistrations": total_registrations,
            "revenue": float(revenue or 0),
            "averageRating": round(float(average_rating), 1) if average_rating is not None else 0,
        },
        "sentiment": sentiment,
        "registrationsByStatus": registrations_by_status,
        "eventsByStatus": events_by_status,
        "recentReviews": reviews_schema.dump(recent_reviews),
        "upcoming": events_schema.dump(next_events),
    }), 200
