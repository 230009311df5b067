# ================================
# Notification Model
# ================================

from datetime import datetime
from eventhive.extensions import db

NOTIFICATION_KINDS = ("event", "review", "review_response", "registration", "general")


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    kind = db.Column(
        db.String(20),
        db.CheckConstraint("kind IN ('event','review','review_response','registration','general')"),
        nullable=False,
        default="general",
    )
    message = db.Column(db.String(500), nullable=True)
    related_id = db.Column(db.String(36), nullable=True)
    extra_data = db.Column(db.JSON, default=dict)

    is_read = db.Column(db.Boolean, default=False, index=True)
    is_admin_notification = db.Column(db.Boolean, default=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="notifications")

    def mark_as_read(self):
        """Mark notification as read"""
        self.is_read = True

    __table_args__ = (
        db.Index("idx_notifications_user_read", "user_id", "is_read"),
        db.Index("idx_notifications_created_at", "created_at"),
    )
