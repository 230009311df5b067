from marshmallow import fields
from eventhive.extensions import ma
from eventhive.schemas.event import EventSummarySchema


class ReviewSchema(ma.Schema):
    id = fields.Int(dump_only=True)
    username = fields.Str()
    review_text = fields.Str()
    rating = fields.Int()
    sentiment = fields.Str(allow_none=True)
    admin_response = fields.Str(allow_none=True)
    event_id = fields.Int(data_key="eventId")
    user_id = fields.Int(data_key="userId")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class ProfileReviewSchema(ma.Schema):
    id = fields.Int()
    text = fields.Str(attribute="review_text")
    rating = fields.Int()
    sentiment = fields.Str(allow_none=True)
    admin_response = fields.Str(data_key="adminResponse", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    event = fields.Nested(EventSummarySchema, only=("id", "title", "date"), allow_none=True)


review_schema = ReviewSchema()
reviews_schema = ReviewSchema(many=True)
profile_reviews_schema = ProfileReviewSchema(many=True)
