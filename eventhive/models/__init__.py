from .user import User
from .events import Event
from .reviews import Review
from .registrations import Registration
from .notifications import Notification
from .event_analytics import EventAnalytics

__all__ = [
    "User", "Event", "Review", "Registration", "Notification", "EventAnalytics",
]
