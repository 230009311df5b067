import re
import logging
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt, jwt_required
from sqlalchemy import or_

from eventhive.extensions import db, limiter
from eventhive.models.user import User
from eventhive.schemas import user_schema
from eventhive.utils.decorators import admin_required, current_user_id

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

EMAIL_REGEX = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def auth_rate_limit():
    return current_app.config["AUTH_RATE_LIMIT"]


def validate_password(password):
    """Validate password strength."""
    min_length = current_app.config["PASSWORD_MIN_LENGTH"]
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, "Password is valid"


def issue_token(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            "username": user.username,
            "email": user.email,
            "is_admin": user.is_admin,
        },
    )


@auth_bp.route("", methods=["POST"])
@limiter.limit(auth_rate_limit)
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not username or not email or not password:
        return jsonify({"error": "Username, email and password are required"}), 400

    if not re.match(EMAIL_REGEX, email):
        return jsonify({"error": "Invalid email format"}), 400

    is_valid, msg = validate_password(password)
    if not is_valid:
        return jsonify({"error": msg}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({"error": "Username already taken"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already in use"}), 400

    new_user = User(username=username, email=email, is_admin=False)
    new_user.set_password(password)

    db.session.add(new_user)
    db.session.commit()
    logger.info(f"Registered user {new_user.username}")

    return jsonify({"message": "SUCCESS", "user": user_schema.dump(new_user)}), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Missing JSON"}), 400

    identifier = (data.get("identifier") or data.get("username") or "").strip()
    password = data.get("password") or ""

    if not identifier or not password:
        return jsonify({"error": "Identifier and password are required"}), 400

    user = User.query.filter(
        or_(User.username == identifier, User.email == identifier.lower())
    ).first()

    if not user:
        logger.info(f"Login failed: unknown identifier {identifier}")
        return jsonify({"error": "User doesn't exist"}), 401

    if not user.check_password(password):
        logger.info(f"Login failed: incorrect password for {user.username}")
        return jsonify({"error": "Please check your credentials"}), 401

    return jsonify({
        "token": issue_token(user),
        "user": user_schema.dump(user),
    }), 200


@auth_bp.route("/auth", methods=["GET"])
@jwt_required()
def me():
    claims = get_jwt()
    return jsonify({
        "id": current_user_id(),
        "username": claims.get("username"),
        "isAdmin": bool(claims.get("is_admin")),
    }), 200


@auth_bp.route("/admin", methods=["GET"])
@admin_required
def admin_only():
    user = User.query.get(current_user_id())
    return jsonify({"message": "Welcome Admin!", "user": user_schema.dump(user)}), 200
