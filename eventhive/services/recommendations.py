import logging
from datetime import date

from sqlalchemy import func, or_

from eventhive.extensions import db
from eventhive.models import Event, Review

logger = logging.getLogger(__name__)

LIKED_RATING = 4
MAX_RECOMMENDATIONS = 10


def _recommendation(event, match_score, reason):
    return {
        "id": event.id,
        "title": event.title,
        "date": event.date.isoformat() if event.date else None,
        "category": event.category,
        "location": event.location,
        "image": event.image,
        "matchScore": match_score,
        "reason": reason,
    }


def _upcoming(query, today):
    return query.filter(Event.date >= today, Event.status == "active")


def collaborative(user_id, liked_event_ids, today):
    """Upcoming events other fans of the same events rated highly."""
    if not liked_event_ids:
        return []
    similar_user_ids = [
        row[0]
        for row in db.session.query(Review.user_id)
        .filter(
            Review.event_id.in_(liked_event_ids),
            Review.rating >= LIKED_RATING,
            Review.user_id != user_id,
        )
        .distinct()
        .all()
    ]
    if not similar_user_ids:
        return []
    rows = (
        _upcoming(
            db.session.query(Event, func.count(Review.id).label("fans"))
            .join(Review, Review.event_id == Event.id)
            .filter(
                Review.user_id.in_(similar_user_ids),
                Review.rating >= LIKED_RATING,
                Event.id.notin_(liked_event_ids),
            ),
            today,
        )
        .group_by(Event.id)
        .all()
    )
    return [
        _recommendation(event, min(fans * 20, 85), "People with similar tastes enjoyed this event")
        for event, fans in rows
    ]


def content_based(liked_categories, excluded_ids, today):
    if not liked_categories:
        return []
    events = (
        _upcoming(Event.query.filter(Event.category.in_(liked_categories)), today)
        .filter(Event.id.notin_(excluded_ids))
        .limit(MAX_RECOMMENDATIONS)
        .all()
    )
    return [_recommendation(e, 75, "Similar to categories you've enjoyed") for e in events]


def by_interests(interests, excluded_ids, today):
    if not interests:
        return []
    clauses = []
    for interest in interests:
        pattern = f"%{interest}%"
        clauses.extend([
            Event.category.ilike(pattern),
            Event.title.ilike(pattern),
            Event.description.ilike(pattern),
        ])
    events = (
        _upcoming(Event.query.filter(or_(*clauses)), today)
        .filter(Event.id.notin_(excluded_ids))
        .limit(MAX_RECOMMENDATIONS)
        .all()
    )
    return [_recommendation(e, 70, "Matches your interests") for e in events]


def popular(excluded_ids, today):
    rows = (
        _upcoming(
            db.session.query(
                Event,
                func.avg(Review.rating).label("avg_rating"),
                func.count(Review.id).label("review_count"),
            ).join(Review, Review.event_id == Event.id),
            today,
        )
        .filter(Event.id.notin_(excluded_ids))
        .group_by(Event.id)
        .order_by(func.avg(Review.rating).desc())
        .limit(MAX_RECOMMENDATIONS)
        .all()
    )
    results = []
    for event, avg_rating, review_count in rows:
        normalized = ((float(avg_rating or 4) - 1) / 4) * 100
        bonus = min((review_count or 0) * 2, 20)
        results.append(_recommendation(event, min(round(normalized + bonus), 100), "Popular highly-rated event"))
    return results


def recommend_for_user(user_id, interests=None, today=None):
    """Up to ten upcoming events, best match first, never ones the user already reviewed."""
    today = today or date.today()
    interests = [i.strip() for i in (interests or []) if i and i.strip()]

    user_reviews = Review.query.filter_by(user_id=user_id).all()
    reviewed_ids = [r.event_id for r in user_reviews]
    liked = [r for r in user_reviews if r.rating >= LIKED_RATING]
    liked_ids = [r.event_id for r in liked]
    liked_categories = sorted({r.event.category for r in liked if r.event and r.event.category})

    candidates = []
    if user_reviews:
        candidates.extend(collaborative(user_id, liked_ids, today))
        candidates.extend(content_based(liked_categories, reviewed_ids, today))
    candidates.extend(by_interests(interests, reviewed_ids, today))
    if not candidates:
        candidates.extend(popular(reviewed_ids, today))

    unique = {}
    for rec in candidates:
        if rec["id"] in reviewed_ids:
            continue
        if rec["id"] not in unique or rec["matchScore"] > unique[rec["id"]]["matchScore"]:
            unique[rec["id"]] = rec

    ranked = sorted(unique.values(), key=lambda r: r["matchScore"], reverse=True)
    logger.debug(f"{len(ranked)} recommendation candidates for user {user_id}")
    return ranked[:MAX_RECOMMENDATIONS]
