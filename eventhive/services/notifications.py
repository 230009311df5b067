"""
Real-time notification fan-out.

Notifications are persisted first, then pushed best-effort over Socket.IO
to either one user's room or the admin broadcast room. A recipient that is
offline simply misses the push and re-fetches through GET /notifications.
"""

import enum
import logging
import threading
from dataclasses import dataclass, asdict, field
from typing import Callable, Dict, Optional, Union

from flask import current_app

from eventhive.extensions import db
from eventhive.models import Notification, User
from eventhive.schemas import notification_schema

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin-channel"


def user_room(user_id):
    return f"user-{user_id}"


class NotificationKind(str, enum.Enum):
    EVENT = "event"
    REVIEW = "review"
    REVIEW_RESPONSE = "review_response"
    REGISTRATION = "registration"
    GENERAL = "general"


@dataclass
class EventMeta:
    event_id: int
    title: str


@dataclass
class ReviewMeta:
    review_id: int
    event_id: int
    rating: int
    username: str
    sentiment: Optional[str] = None


@dataclass
class ReviewResponseMeta:
    review_id: int
    event_id: int
    admin_response: str


@dataclass
class RegistrationMeta:
    registration_id: str
    event_id: int
    full_name: str
    ticket_quantity: int
    payment_status: str


@dataclass
class GeneralMeta:
    extra: Dict = field(default_factory=dict)


NotificationMeta = Union[EventMeta, ReviewMeta, ReviewResponseMeta, RegistrationMeta, GeneralMeta]

META_TYPES = {
    NotificationKind.EVENT: EventMeta,
    NotificationKind.REVIEW: ReviewMeta,
    NotificationKind.REVIEW_RESPONSE: ReviewResponseMeta,
    NotificationKind.REGISTRATION: RegistrationMeta,
    NotificationKind.GENERAL: GeneralMeta,
}


@dataclass
class NotificationPayload:
    kind: NotificationKind
    message: str
    meta: NotificationMeta
    related_id: Optional[str] = None

    def __post_init__(self):
        self.kind = NotificationKind(self.kind)
        expected = META_TYPES[self.kind]
        if not isinstance(self.meta, expected):
            raise TypeError(f"{self.kind.value} notifications carry {expected.__name__}, got {type(self.meta).__name__}")

    def metadata(self):
        return asdict(self.meta)


# ================================
# Session registry
# ================================

@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str
    is_admin: bool = False


IdentityResolver = Callable[[str], Optional[Identity]]


class SessionRegistry:
    """Maps connected socket session ids to the identity that authenticated on them."""

    def __init__(self, resolver: IdentityResolver):
        self._resolver = resolver
        self._sessions: Dict[str, Identity] = {}
        self._lock = threading.Lock()

    def resolve(self, token) -> Optional[Identity]:
        return self._resolver(token) if token else None

    def register(self, sid: str, identity: Identity):
        with self._lock:
            self._sessions[sid] = identity

    def authenticate(self, sid: str, token: str) -> Optional[Identity]:
        identity = self.resolve(token)
        if identity is not None:
            self.register(sid, identity)
        return identity

    def identity_for(self, sid: str) -> Optional[Identity]:
        return self._sessions.get(sid)

    def unregister(self, sid: str) -> Optional[Identity]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def sessions_for_user(self, user_id: int):
        return [sid for sid, identity in self._sessions.items() if identity.user_id == user_id]

    def is_online(self, user_id: int) -> bool:
        return bool(self.sessions_for_user(user_id))

    def __len__(self):
        return len(self._sessions)


# ================================
# Publisher
# ================================

class NotificationService:
    def __init__(self, socketio):
        self.socketio = socketio

    def _emit(self, event_name, data, room=None):
        try:
            if room is None:
                self.socketio.emit(event_name, data)
            else:
                self.socketio.emit(event_name, data, to=room)
        except Exception as e:
            logger.error(f"Failed to push '{event_name}' to {room or 'all'}: {e}")

    def _store(self, user_id, payload: NotificationPayload, is_admin_notification=False):
        notification = Notification(
            user_id=user_id,
            kind=payload.kind.value,
            message=payload.message,
            related_id=payload.related_id,
            extra_data=payload.metadata(),
            is_admin_notification=is_admin_notification,
            is_read=False,
        )
        db.session.add(notification)
        return notification

    def notify_user(self, user_id, payload: NotificationPayload, event_name="user-notification"):
        """Persist a notification for one user and push it to their room."""
        notification = self._store(user_id, payload)
        db.session.commit()
        self._emit(event_name, notification_schema.dump(notification), room=user_room(user_id))
        return notification

    def notify_admins(self, payload: NotificationPayload, event_name="notification"):
        """Persist one notification per admin and broadcast once to the admin room."""
        admins = User.query.filter_by(is_admin=True).all()
        stored = [self._store(admin.id, payload, is_admin_notification=True) for admin in admins]
        db.session.commit()

        data = {
            "type": payload.kind.value,
            "message": payload.message,
            "relatedId": payload.related_id,
            "metadata": payload.metadata(),
            "isAdminNotification": True,
        }
        self._emit(event_name, data, room=ADMIN_ROOM)
        return stored

    def notify_all_users(self, payload: NotificationPayload, exclude_user_id=None):
        """Persist a copy for every non-admin user and broadcast to everyone connected."""
        users = User.query.filter_by(is_admin=False).all()
        stored = [
            self._store(user.id, payload)
            for user in users
            if user.id != exclude_user_id
        ]
        db.session.commit()
        self._emit("notification", {
            "type": payload.kind.value,
            "message": payload.message,
            "relatedId": payload.related_id,
            "metadata": payload.metadata(),
            "isAdminNotification": False,
        })
        return stored

    def push_to_admins(self, event_name, data):
        self._emit(event_name, data, room=ADMIN_ROOM)


def get_notifier() -> NotificationService:
    return current_app.extensions["eventhive.notifications"]


def get_session_registry() -> SessionRegistry:
    return current_app.extensions["eventhive.sessions"]
