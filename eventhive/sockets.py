import logging

from flask import request
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import emit, join_room
from jwt.exceptions import PyJWTError

from eventhive.models import User
from eventhive.services.notifications import ADMIN_ROOM, Identity, get_session_registry, user_room

logger = logging.getLogger(__name__)


def resolve_identity(token):
    """Turn a bearer token into an Identity, or None when it is invalid or the user is gone."""
    if not isinstance(token, str):
        return None
    if token.startswith("Bearer "):
        token = token[len("Bearer "):]
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError) as e:
        logger.info(f"Rejected socket token: {e}")
        return None

    user = User.query.get(int(claims["sub"]))
    if not user:
        return None
    return Identity(user_id=user.id, username=user.username, is_admin=user.is_admin)


def _token_from(data):
    if isinstance(data, dict):
        return data.get("token")
    return data


def _joined(identity):
    join_room(user_room(identity.user_id))
    if identity.is_admin:
        join_room(ADMIN_ROOM)

    emit("authenticated", {
        "userId": identity.user_id,
        "username": identity.username,
        "isAdmin": identity.is_admin,
    })


def _authenticate(token):
    identity = get_session_registry().authenticate(request.sid, token)
    if identity is None:
        emit("auth_error", {"error": "Authentication failed"})
        return None

    _joined(identity)
    logger.info(f"Socket {request.sid} authenticated as {identity.username}")
    return identity


def handle_connect(auth=None):
    token = _token_from(auth)
    if token:
        _authenticate(token)
    logger.debug(f"Socket connected: {request.sid}")


def handle_authenticate(data):
    _authenticate(_token_from(data))


def handle_join_admin_channel(data):
    registry = get_session_registry()
    identity = registry.resolve(_token_from(data))
    if identity is None or not identity.is_admin:
        emit("auth_error", {"error": "Admin access required"})
        return

    registry.register(request.sid, identity)
    _joined(identity)
    logger.info(f"Admin {identity.username} joined {ADMIN_ROOM}")


def handle_disconnect(*args):
    identity = get_session_registry().unregister(request.sid)
    if identity:
        logger.debug(f"Socket {request.sid} of {identity.username} disconnected")


def register_socket_handlers(socketio):
    """Attach the handlers to the server `socketio.init_app` just built for the current app."""
    socketio.on_event("connect", handle_connect)
    socketio.on_event("authenticate", handle_authenticate)
    socketio.on_event("join-admin-channel", handle_join_admin_channel)
    socketio.on_event("disconnect", handle_disconnect)
