"""
Review analytics.

``build_time_series`` is a pure transform over review records: one bucket
per calendar day, a weighted sentiment score per bucket and gap filling.
``refresh_event_analytics`` writes the derived numbers to the
EventAnalytics cache row of an event.
"""

import math
import logging
from datetime import date, datetime, timedelta

import pandas as pd

from eventhive.extensions import db
from eventhive.models import EventAnalytics, Registration, Review
from eventhive.services import sentiment as sentiment_service

logger = logging.getLogger(__name__)

SENTIMENT_WEIGHTS = {"positive": 100, "neutral": 50, "negative": 0}
DEFAULT_SENTIMENT_SCORE = 70
ENGAGEMENT_WINDOW_DAYS = 30


class InvalidDateError(ValueError):
    pass


def _field(record, *names):
    for name in names:
        if isinstance(record, dict):
            if name in record:
                return record[name]
        elif hasattr(record, name):
            return getattr(record, name)
    return None


def to_day(value):
    """Coerce a date, datetime or ISO string to a calendar day (UTC for aware values)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise InvalidDateError(f"Invalid date: {value!r}") from e
    if pd.isna(ts):
        raise InvalidDateError(f"Invalid date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.date()


def _round_half_up(value):
    if pd.isna(value):
        return value
    return math.floor(value + 0.5)


def build_time_series(reviews, start_date, end_date):
    """
    Daily sentiment score and review volume between two days, inclusive.

    Score per day is (positive*100 + neutral*50 + negative*0) / total.
    Days without reviews take the last known score, else the next known
    score, else DEFAULT_SENTIMENT_SCORE.
    """
    start = to_day(start_date)
    end = to_day(end_date)

    days = pd.date_range(start, end, freq="D")
    counts = pd.DataFrame(0, index=days, columns=list(SENTIMENT_WEIGHTS))

    for review in reviews:
        day = pd.Timestamp(to_day(_field(review, "created_at", "createdAt")))
        if day not in counts.index:
            continue
        label = _field(review, "sentiment")
        if label not in SENTIMENT_WEIGHTS:
            label = "neutral"
        counts.loc[day, label] += 1

    volume = counts.sum(axis=1)
    weighted = sum(counts[label] * weight for label, weight in SENTIMENT_WEIGHTS.items())
    scores = (weighted / volume.where(volume > 0)).map(_round_half_up)
    scores = scores.ffill().bfill().fillna(DEFAULT_SENTIMENT_SCORE)

    return {
        "sentiment": [
            {"date": day.strftime("%Y-%m-%d"), "score": int(score)}
            for day, score in scores.items()
        ],
        "volume": [
            {"date": day.strftime("%Y-%m-%d"), "count": int(count)}
            for day, count in volume.items()
        ],
    }


def summarize_reviews(reviews):
    total = len(reviews)
    distribution = {str(star): 0 for star in range(1, 6)}
    sentiment = {label: 0 for label in SENTIMENT_WEIGHTS}
    rating_sum = 0

    for review in reviews:
        rating = _field(review, "rating")
        rating_sum += rating
        if 1 <= rating <= 5:
            distribution[str(rating)] += 1
        label = _field(review, "sentiment")
        sentiment[label if label in sentiment else "neutral"] += 1

    return {
        "totalReviews": total,
        "ratings": {
            "average": round(rating_sum / total, 1) if total else 0,
            "distribution": distribution,
        },
        "sentiment": sentiment,
    }


def get_or_create_analytics(event):
    analytics = EventAnalytics.query.filter_by(event_id=event.id).first()
    if analytics is None:
        analytics = EventAnalytics(
            event_id=event.id,
            attendance_data={},
            satisfaction_data={},
            rating_breakdown={},
            engagement_over_time={},
            ai_insights=[],
        )
        db.session.add(analytics)
    return analytics


def refresh_event_analytics(event, today=None):
    """Recompute the cached analytics row of an event. Caller commits."""
    analytics = get_or_create_analytics(event)
    reviews = Review.query.filter_by(event_id=event.id).order_by(Review.created_at).all()
    summary = summarize_reviews(reviews)

    analytics.total_reviews = summary["totalReviews"]
    analytics.average_rating = summary["ratings"]["average"]
    analytics.rating_breakdown = summary["ratings"]["distribution"]
    analytics.sentiment_positive_count = summary["sentiment"]["positive"]
    analytics.sentiment_neutral_count = summary["sentiment"]["neutral"]
    analytics.sentiment_negative_count = summary["sentiment"]["negative"]
    analytics.satisfaction_data = {
        "sentimentScore": analytics.sentiment_score,
        "averageRating": analytics.average_rating,
    }

    registrations = Registration.query.filter_by(event_id=event.id).all()
    checked_in = sum(r.ticket_quantity for r in registrations if r.check_in_status)
    registered = sum(
        r.ticket_quantity for r in registrations
        if r.payment_status not in ("failed", "refunded")
    )
    analytics.total_attendance = checked_in
    analytics.attendance_data = {
        "registered": registered,
        "checkedIn": checked_in,
        "capacity": event.tickets_available,
        "registrations": len(registrations),
    }

    end = today or date.today()
    start = end - timedelta(days=ENGAGEMENT_WINDOW_DAYS - 1)
    analytics.engagement_over_time = build_time_series(reviews, start, end)
    analytics.ai_insights = sentiment_service.analyze_reviews(event.title, reviews)["insights"]

    logger.info(f"Refreshed analytics for event {event.id}: {analytics.total_reviews} reviews")
    return analytics


def analytics_to_dict(analytics):
    return {
        "id": analytics.id,
        "event_id": analytics.event_id,
        "attendance_data": analytics.attendance_data,
        "satisfaction_data": analytics.satisfaction_data,
        "rating_breakdown": analytics.rating_breakdown,
        "engagement_over_time": analytics.engagement_over_time,
        "ai_insights": analytics.ai_insights,
        "sentiment_positive_count": analytics.sentiment_positive_count,
        "sentiment_neutral_count": analytics.sentiment_neutral_count,
        "sentiment_negative_count": analytics.sentiment_negative_count,
        "total_reviews": analytics.total_reviews,
        "average_rating": analytics.average_rating,
        "total_attendance": analytics.total_attendance,
        "sentiment_score": analytics.sentiment_score,
        "updated_at": analytics.updated_at.isoformat() if analytics.updated_at else None,
    }
