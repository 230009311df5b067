import uuid
from datetime import datetime
from sqlalchemy.orm import validates
from eventhive.extensions import db

PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded", "free")


def generate_confirmation_code():
    return uuid.uuid4().hex[:8].upper()


class Registration(db.Model):
    __tablename__ = "registrations"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Attendee details
    full_name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    zip_code = db.Column(db.String(20))
    special_requirements = db.Column(db.Text)

    ticket_quantity = db.Column(db.Integer, nullable=False, default=1)
    registration_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Payment
    payment_status = db.Column(
        db.String(20),
        db.CheckConstraint("payment_status IN ('pending','completed','failed','refunded','free')"),
        nullable=False,
        default="pending",
        index=True,
    )
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    payment_method = db.Column(db.String(50))
    payment_date = db.Column(db.DateTime)
    transaction_id = db.Column(db.String(255))
    checkout_session_id = db.Column(db.String(255), index=True)

    confirmation_code = db.Column(db.String(20), nullable=False, default=generate_confirmation_code, index=True)
    check_in_status = db.Column(db.Boolean, nullable=False, default=False)
    check_in_time = db.Column(db.DateTime)

    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    event = db.relationship("Event", back_populates="registrations")
    user = db.relationship("User", back_populates="registrations")

    @validates("payment_status")
    def validate_payment_status(self, key, value):
        if value not in PAYMENT_STATUSES:
            raise ValueError(f"Invalid payment status: {value}")
        return value

    @validates("ticket_quantity")
    def validate_ticket_quantity(self, key, value):
        if value is None or int(value) < 1:
            raise ValueError("Ticket quantity must be at least 1")
        return int(value)

    @property
    def is_paid(self):
        return self.payment_status in ("completed", "free")

    def check_in(self, status=True):
        self.check_in_status = bool(status)
        self.check_in_time = datetime.utcnow() if self.check_in_status else None

    def __repr__(self):
        return f"<Registration {self.confirmation_code} for event {self.event_id}>"
