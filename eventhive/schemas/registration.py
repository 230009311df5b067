from marshmallow import fields, validate
from eventhive.extensions import ma
from eventhive.models.registrations import PAYMENT_STATUSES
from eventhive.schemas.event import EventSummarySchema

PHONE_PATTERN = r"^[6-9]\d{9}$"
ZIP_CODE_PATTERN = r"^[1-9][0-9]{5}$"


class RegistrationSchema(ma.Schema):
    id = fields.Str(dump_only=True)
    event_id = fields.Int(data_key="eventId", required=True)
    user_id = fields.Int(data_key="userId", allow_none=True)

    full_name = fields.Str(data_key="fullName", required=True, validate=validate.Length(min=1, max=150))
    email = fields.Email(required=True)
    phone = fields.Str(
        required=True,
        validate=validate.Regexp(
            PHONE_PATTERN,
            error="That's not a valid phone number, unless your phone dials into another dimension.",
        ),
    )
    address = fields.Str(allow_none=True)
    city = fields.Str(allow_none=True)
    state = fields.Str(allow_none=True)
    zip_code = fields.Str(
        data_key="zipCode",
        allow_none=True,
        validate=validate.Regexp(ZIP_CODE_PATTERN, error="That's not a valid PIN code."),
    )
    special_requirements = fields.Str(data_key="specialRequirements", allow_none=True)

    ticket_quantity = fields.Int(data_key="ticketQuantity", load_default=1, validate=validate.Range(min=1))
    payment_status = fields.Str(data_key="paymentStatus", validate=validate.OneOf(PAYMENT_STATUSES))
    total_amount = fields.Float(data_key="totalAmount", validate=validate.Range(min=0))
    payment_method = fields.Str(data_key="paymentMethod", allow_none=True)

    registration_date = fields.DateTime(data_key="registrationDate", dump_only=True)
    payment_date = fields.DateTime(data_key="paymentDate", dump_only=True)
    transaction_id = fields.Str(data_key="transactionId", dump_only=True)
    confirmation_code = fields.Str(data_key="confirmationCode", dump_only=True)
    check_in_status = fields.Bool(data_key="checkInStatus", dump_only=True)
    check_in_time = fields.DateTime(data_key="checkInTime", dump_only=True)
    event = fields.Nested(EventSummarySchema, data_key="Event", dump_only=True)


class PaymentUpdateSchema(ma.Schema):
    payment_status = fields.Str(data_key="paymentStatus", required=True, validate=validate.OneOf(PAYMENT_STATUSES))
    payment_method = fields.Str(data_key="paymentMethod", allow_none=True)
    transaction_id = fields.Str(data_key="transactionId", allow_none=True)


registration_schema = RegistrationSchema()
registrations_schema = RegistrationSchema(many=True)
payment_update_schema = PaymentUpdateSchema()
