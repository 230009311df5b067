from datetime import datetime
from eventhive.extensions import db


class EventAnalytics(db.Model):
    """Denormalized cache of derived metrics per event."""

    __tablename__ = "event_analytics"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True)

    attendance_data = db.Column(db.JSON)
    satisfaction_data = db.Column(db.JSON)
    rating_breakdown = db.Column(db.JSON)
    engagement_over_time = db.Column(db.JSON)
    ai_insights = db.Column(db.JSON)

    sentiment_positive_count = db.Column(db.Integer, nullable=False, default=0)
    sentiment_neutral_count = db.Column(db.Integer, nullable=False, default=0)
    sentiment_negative_count = db.Column(db.Integer, nullable=False, default=0)
    total_reviews = db.Column(db.Integer, nullable=False, default=0)
    average_rating = db.Column(db.Float, nullable=False, default=0)
    total_attendance = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = db.relationship("Event", back_populates="analytics")

    @property
    def sentiment_score(self):
        """Share of positive reviews among all labelled reviews, 0-100."""
        total = self.sentiment_positive_count + self.sentiment_neutral_count + self.sentiment_negative_count
        if not total:
            return 0
        return round(self.sentiment_positive_count / total * 100)
