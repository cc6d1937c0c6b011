# petsynth/api/auth/schemas.py
from marshmallow import Schema, fields, validate, RAISE


class CredentialsSchema(Schema):
    """Request body of register and login. Extra keys are rejected."""
    class Meta:
        unknown = RAISE

    username = fields.Str(required=True, validate=validate.Length(min=3, max=24))
    password = fields.Str(required=True, validate=validate.Length(min=6, max=72), load_only=True)


class UserSchema(Schema):
    id = fields.Str()
    username = fields.Str()


class AuthResponseSchema(Schema):
    token = fields.Str()
    user = fields.Nested(UserSchema)
