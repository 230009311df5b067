from marshmallow import fields
from eventhive.extensions import ma


class UserSchema(ma.Schema):
    id = fields.Int()
    username = fields.Str()
    email = fields.Email()
    is_admin = fields.Bool(data_key="isAdmin")
    created_at = fields.DateTime(data_key="createdAt")


user_schema = UserSchema()
users_schema = UserSchema(many=True)
