import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt, jwt_required
from sqlalchemy.exc import IntegrityError

from eventhive.extensions import db
from eventhive.models import Event, Review
from eventhive.schemas import review_schema, reviews_schema
from eventhive.services import sentiment as sentiment_service
from eventhive.services.notifications import (
    NotificationKind,
    NotificationPayload,
    ReviewMeta,
    ReviewResponseMeta,
    get_notifier,
)
from eventhive.utils.decorators import admin_required, current_user_id

logger = logging.getLogger(__name__)

reviews_bp = Blueprint("reviews", __name__)


def default_admin_response(review):
    username = review.username
    title = review.event.title
    if review.sentiment == "positive":
        return (
            f"Thank you for your positive review, {username}! We're delighted that you enjoyed {title} "
            "and appreciate your feedback. We hope to see you at our future events!"
        )
    if review.sentiment == "negative":
        return (
            f"We're sorry to hear about your experience at {title}, {username}. We take all feedback "
            "seriously and will use your comments to improve. Please contact our support team if you'd "
            "like to discuss your concerns further."
        )
    return (
        f"Thank you for attending {title} and sharing your thoughts, {username}. We appreciate your honest "
        "feedback and will take your comments into consideration for our future events."
    )


def render_template_response(template, review):
    return (
        template.replace("{username}", review.username)
        .replace("{event_name}", review.event.title)
        .replace("{rating}", str(review.rating))
        .replace("{category}", review.event.category or "")
    )


@reviews_bp.route("/<int:event_id>", methods=["GET"])
def list_reviews(event_id):
    reviews = (
        Review.query.filter_by(event_id=event_id)
        .order_by(Review.created_at.desc())
        .all()
    )
    if not reviews:
        return jsonify({"error": "No reviews found for this event"}), 404
    return jsonify(reviews_schema.dump(reviews)), 200


@reviews_bp.route("/", methods=["POST"])
@jwt_required()
def create_review():
    data = request.get_json(silent=True) or {}
    user_id = current_user_id()
    username = get_jwt().get("username")

    review_text = (data.get("review_text") or "").strip()
    rating = data.get("rating")
    event_id = data.get("eventId")

    if not review_text or rating is None or not isinstance(event_id, int):
        return jsonify({"error": "Missing or invalid fields"}), 400

    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    if Review.query.filter_by(event_id=event_id, user_id=user_id).first():
        return jsonify({"error": "You have already reviewed this event."}), 400

    try:
        review = Review(
            review_text=review_text,
            rating=rating,
            event_id=event_id,
            user_id=user_id,
            username=username,
            sentiment=sentiment_service.classify(review_text),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        db.session.add(review)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "You have already reviewed this event."}), 400
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error adding review: {e}")
        return jsonify({"error": "There was an error adding your review. Please try again."}), 500

    notifier = get_notifier()
    notifier.notify_admins(NotificationPayload(
        kind=NotificationKind.REVIEW,
        message=f'{review.username} left a {review.rating}-star review on "{event.title}"',
        meta=ReviewMeta(
            review_id=review.id,
            event_id=event.id,
            rating=review.rating,
            username=review.username,
            sentiment=review.sentiment,
        ),
        related_id=str(review.id),
    ))
    notifier.push_to_admins("new-review", review_schema.dump(review))

    return jsonify({"message": "Review added successfully", "review": review_schema.dump(review)}), 201


@reviews_bp.route("/<int:review_id>", methods=["DELETE"])
@jwt_required()
def delete_review(review_id):
    review = Review.query.filter_by(id=review_id, user_id=current_user_id()).first()
    if not review:
        return jsonify({"error": "Review not found or not owned by user"}), 404

    try:
        db.session.delete(review)
        db.session.commit()
        return jsonify({"message": "Review deleted successfully"}), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting review {review_id}: {e}")
        return jsonify({"error": "There was an error deleting the review. Please try again."}), 500


@reviews_bp.route("/respond/<int:review_id>", methods=["PUT"])
@admin_required
def respond_to_review(review_id):
    """
    Attach an admin response to a review and notify its author.

    Body may carry ``admin_response`` (used verbatim) or ``template`` with
    {username}, {event_name}, {rating} and {category} placeholders. Without
    either, a reply matching the review's sentiment is generated.
    """
    review = Review.query.get(review_id)
    if not review:
        return jsonify({"error": "Review not found"}), 404

    data = request.get_json(silent=True) or {}
    if data.get("admin_response"):
        response = data["admin_response"].strip()
    elif data.get("template"):
        response = render_template_response(data["template"], review)
    else:
        response = default_admin_response(review)

    try:
        review.admin_response = response
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving response to review {review_id}: {e}")
        return jsonify({"error": "Internal server error"}), 500

    get_notifier().notify_user(review.user_id, NotificationPayload(
        kind=NotificationKind.REVIEW_RESPONSE,
        message=f"Admin responded to your review for {review.event.title}.",
        meta=ReviewResponseMeta(
            review_id=review.id,
            event_id=review.event_id,
            admin_response=response,
        ),
        related_id=str(review.event_id),
    ))

    return jsonify({"success": True, "response": response, "reviewId": review.id}), 200


@reviews_bp.route("/sentiment/<int:event_id>", methods=["GET"])
def event_sentiment(event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({"error": "Event not found"}), 404

    reviews = Review.query.filter_by(event_id=event_id).all()
    return jsonify(sentiment_service.analyze_reviews(event.title, reviews)), 200
