from marshmallow import fields, validate, validates_schema, ValidationError
from eventhive.extensions import ma
from eventhive.models.events import EVENT_STATUSES


class EventSchema(ma.Schema):
    id = fields.Int(dump_only=True)
    title = fields.Str(required=True, validate=validate.Length(min=1, max=150))
    description = fields.Str(required=True, validate=validate.Length(min=1))
    location = fields.Str(required=True, validate=validate.Length(min=1, max=150))
    date = fields.Date(required=True)
    time = fields.Time(allow_none=True)
    category = fields.Str(allow_none=True)
    image = fields.Str(allow_none=True)
    price = fields.Float(validate=validate.Range(min=0))
    is_paid = fields.Bool(data_key="isPaid")
    tickets_available = fields.Int(data_key="ticketsAvailable", allow_none=True, validate=validate.Range(min=0))
    registration_deadline = fields.Date(data_key="registrationDeadline", allow_none=True)
    max_registrations = fields.Int(data_key="maxRegistrations", allow_none=True, validate=validate.Range(min=0))
    min_registrations = fields.Int(data_key="minRegistrations", allow_none=True, validate=validate.Range(min=0))
    status = fields.Str(validate=validate.OneOf(EVENT_STATUSES))

    organizer_id = fields.Int(data_key="organizerId", dump_only=True)
    organizer = fields.Method("get_organizer", dump_only=True)
    tickets_remaining = fields.Int(data_key="ticketsRemaining", dump_only=True)
    registration_open = fields.Bool(data_key="registrationOpen", dump_only=True)
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)
    updated_at = fields.DateTime(data_key="updatedAt", dump_only=True)

    def get_organizer(self, obj):
        return obj.organizer.username if obj.organizer else None

    @validates_schema
    def validate_registration_bounds(self, data, **kwargs):
        low = data.get("min_registrations")
        high = data.get("max_registrations")
        if low is not None and high is not None and low > high:
            raise ValidationError("minRegistrations cannot exceed maxRegistrations", "minRegistrations")
        deadline = data.get("registration_deadline")
        if deadline and data.get("date") and deadline > data["date"]:
            raise ValidationError("registrationDeadline must be on or before the event date", "registrationDeadline")


class EventSummarySchema(ma.Schema):
    id = fields.Int()
    title = fields.Str()
    date = fields.Date()
    category = fields.Str()
    location = fields.Str()
    image = fields.Str()


event_schema = EventSchema()
events_schema = EventSchema(many=True)
event_summary_schema = EventSummarySchema()
