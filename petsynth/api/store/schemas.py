# petsynth/api/store/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE


class AddToStoreSchema(Schema):
    """POST /api/store"""
    class Meta:
        unknown = EXCLUDE

    pet_id = fields.Str(required=True, data_key="petId", validate=validate.Length(min=1))
