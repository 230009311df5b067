from marshmallow import fields
from eventhive.extensions import ma


class NotificationSchema(ma.Schema):
    id = fields.Int()
    user_id = fields.Int(data_key="userId")
    kind = fields.Str(data_key="type")
    message = fields.Str(allow_none=True)
    related_id = fields.Str(data_key="relatedId", allow_none=True)
    extra_data = fields.Dict(data_key="metadata")
    is_read = fields.Bool(data_key="isRead")
    is_admin_notification = fields.Bool(data_key="isAdminNotification")
    created_at = fields.DateTime(data_key="createdAt")


notification_schema = NotificationSchema()
notifications_schema = NotificationSchema(many=True)
