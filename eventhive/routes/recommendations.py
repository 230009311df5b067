import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from eventhive.services.recommendations import recommend_for_user
from eventhive.utils.decorators import current_user_id

logger = logging.getLogger(__name__)

recommendations_bp = Blueprint("recommendations", __name__)


@recommendations_bp.route("/", methods=["GET"])
@jwt_required()
def recommendations():
    user_id = current_user_id()

    requested = request.args.get("userId")
    if requested and requested != str(user_id):
        return jsonify({"error": "Unauthorized access", "recommendations": []}), 403

    interests = [i for i in (request.args.get("interests") or "").split(",") if i.strip()]

    try:
        results = recommend_for_user(user_id, interests=interests)
    except Exception as e:
        logger.error(f"Error generating recommendations for user {user_id}: {e}")
        return jsonify({"error": "Failed to generate recommendations", "recommendations": []}), 500

    if not results:
        explanation = "No upcoming events match your activity yet."
    elif interests:
        explanation = "Based on your reviews and your interests: " + ", ".join(i.strip() for i in interests)
    else:
        explanation = "Based on events you and similar attendees enjoyed."

    return jsonify({"recommendations": results, "explanation": explanation}), 200
