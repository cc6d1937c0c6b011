# petsynth/api/pets/schemas.py
from marshmallow import Schema, fields


class PetResponseSchema(Schema):
    """Full pet as returned by the catalog and by accept."""
    id = fields.Str()
    name = fields.Str()
    species = fields.Str()
    traits = fields.List(fields.Str())
    description = fields.Str()
    care_instructions = fields.Str(data_key="careInstructions")
    price_cents = fields.Int(data_key="priceCents")
    image_url = fields.Str(data_key="imageUrl")
    status = fields.Str()
    created_by_user_id = fields.Str(data_key="createdByUserId", allow_none=True)
    created_at = fields.Int(data_key="createdAt")


class PetSummarySchema(Schema):
    """Collection entry: just enough for a card."""
    id = fields.Str()
    name = fields.Str()
    species = fields.Str()
    price_cents = fields.Int(data_key="priceCents")
    image_url = fields.Str(data_key="imageUrl")


class PetListMetaSchema(Schema):
    total = fields.Int()
    limit = fields.Int()
    offset = fields.Int()
    count = fields.Int()


class PetListResponseSchema(Schema):
    items = fields.List(fields.Nested(PetResponseSchema))
    meta = fields.Nested(PetListMetaSchema)
