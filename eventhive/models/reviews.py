from datetime import datetime
from sqlalchemy.orm import validates
from eventhive.extensions import db

SENTIMENT_LABELS = ("positive", "neutral", "negative")


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False)
    review_text = db.Column(db.Text, nullable=False)
    rating = db.Column(
        db.Integer,
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        nullable=False,
    )
    sentiment = db.Column(db.String(20), nullable=True)
    admin_response = db.Column(db.Text, nullable=True)

    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = db.relationship("Event", back_populates="reviews")
    user = db.relationship("User", back_populates="reviews")

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uniq_review_event_user"),
    )

    @validates("rating")
    def validate_rating(self, key, value):
        try:
            rating = int(value)
        except (TypeError, ValueError):
            raise ValueError("Rating must be an integer between 1 and 5")
        if rating != value and not isinstance(value, str):
            raise ValueError("Rating must be an integer between 1 and 5")
        if rating < 1 or rating > 5:
            raise ValueError("Rating must be between 1 and 5")
        return rating

    @validates("review_text", "username")
    def validate_not_empty(self, key, value):
        if value is None or not str(value).strip():
            raise ValueError(f"{key} must not be empty")
        return value

    @validates("sentiment")
    def validate_sentiment(self, key, value):
        if value is not None and value not in SENTIMENT_LABELS:
            raise ValueError(f"Invalid sentiment label: {value}")
        return value

    def __repr__(self):
        return f"<Review {self.id}: {self.rating} for event {self.event_id}>"
