from marshmallow import Schema, fields


class UserSchema(Schema):
    id = fields.Int(dump_only=True)
    email = fields.Str()
    full_name = fields.Str(data_key="fullName")
    role = fields.Str()
    email_verified = fields.Bool(data_key="emailVerified")
    last_login_at = fields.DateTime(data_key="lastLoginAt")
    created_at = fields.DateTime(data_key="createdAt")
