from .user import UserSchema, user_schema, users_schema
from .event import EventSchema, event_schema, events_schema, event_summary_schema
from .review import ReviewSchema, review_schema, reviews_schema, profile_reviews_schema
from .registration import RegistrationSchema, registration_schema, registrations_schema, payment_update_schema
from .notification import NotificationSchema, notification_schema, notifications_schema
