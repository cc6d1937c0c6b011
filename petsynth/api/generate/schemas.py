# petsynth/api/generate/schemas.py
from marshmallow import Schema, fields, validate, RAISE


class GenerateRequestSchema(Schema):
    """POST /api/generate"""
    class Meta:
        unknown = RAISE

    prompt = fields.Str(required=True, validate=validate.Length(min=4, max=400))


class UsageSchema(Schema):
    input_tokens = fields.Int(data_key="inputTokens")
    output_tokens = fields.Int(data_key="outputTokens")
    cost_usd = fields.Float(data_key="costUsd")
