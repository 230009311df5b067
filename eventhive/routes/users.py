import logging
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from eventhive.extensions import db
from eventhive.models import Review, User
from eventhive.routes.auth import validate_password
from eventhive.schemas import profile_reviews_schema, user_schema
from eventhive.utils.decorators import current_user_id

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)


@users_bp.route("/profile", methods=["GET"])
@jwt_required()
def profile():
    user = User.query.get(current_user_id())
    if not user:
        return jsonify({"error": "User not found"}), 404

    reviews = (
        Review.query.filter_by(user_id=user.id)
        .order_by(Review.created_at.desc())
        .all()
    )
    return jsonify({
        "user": user_schema.dump(user),
        "reviews": profile_reviews_schema.dump(reviews),
    }), 200


@users_bp.route("/edit-profile", methods=["PUT"])
@jwt_required()
def edit_profile():
    user = User.query.get(current_user_id())
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password")

    if not username and not password:
        return jsonify({"error": "Nothing to update"}), 400

    try:
        if username and username != user.username:
            if User.query.filter(User.username == username, User.id != user.id).first():
                return jsonify({"error": "Username already taken"}), 400
            user.username = username
            # reviews carry the author's display name
            Review.query.filter_by(user_id=user.id).update({"username": username})

        if password:
            is_valid, msg = validate_password(password)
            if not is_valid:
                return jsonify({"error": msg}), 400
            user.set_password(password)

        db.session.commit()
        return jsonify({"message": "Profile updated successfully", "user": user_schema.dump(user)}), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating profile for user {user.id}: {e}")
        return jsonify({"error": "Failed to update profile"}), 500
