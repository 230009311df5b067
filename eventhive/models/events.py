from datetime import datetime, date
from sqlalchemy.orm import validates
from eventhive.extensions import db

EVENT_STATUSES = ("active", "cancelled", "completed", "draft")


# ================================
# Event Model
# ================================

class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(150), nullable=False)
    category = db.Column(db.String(50), index=True)
    image = db.Column(db.String(255))

    # Date and time
    date = db.Column(db.Date, nullable=False, index=True)
    time = db.Column(db.Time)

    # Pricing and capacity
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    tickets_available = db.Column(db.Integer)
    registration_deadline = db.Column(db.Date)
    max_registrations = db.Column(db.Integer)
    min_registrations = db.Column(db.Integer)

    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','cancelled','completed','draft')"),
        nullable=False,
        default="active",
        index=True,
    )

    organizer_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organizer = db.relationship("User", back_populates="events")
    reviews = db.relationship("Review", back_populates="event", lazy="dynamic", cascade="all, delete-orphan")
    registrations = db.relationship("Registration", back_populates="event", lazy="dynamic", cascade="all, delete-orphan")
    analytics = db.relationship("EventAnalytics", back_populates="event", uselist=False, cascade="all, delete-orphan")

    @validates("status")
    def validate_status(self, key, value):
        if value not in EVENT_STATUSES:
            raise ValueError(f"Invalid event status: {value}")
        return value

    @property
    def tickets_sold(self):
        from eventhive.models.registrations import Registration

        total = (
            db.session.query(db.func.coalesce(db.func.sum(Registration.ticket_quantity), 0))
            .filter(
                Registration.event_id == self.id,
                Registration.payment_status.notin_(("failed", "refunded")),
            )
            .scalar()
        )
        return int(total or 0)

    @property
    def tickets_remaining(self):
        if self.tickets_available is None:
            return None
        return max(self.tickets_available - self.tickets_sold, 0)

    @property
    def registration_open(self):
        if self.status != "active":
            return False
        today = date.today()
        if self.registration_deadline:
            return today <= self.registration_deadline
        return today <= self.date

    def __repr__(self):
        return f"<Event {self.id}: {self.title}>"
