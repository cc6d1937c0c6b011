# petsynth/schemas/pet_schema.py
"""
Structural validation of pet drafts.

The same shape is checked twice: once when a provider returns a draft
(generation stage, which carries `imagePrompt`) and once when a user accepts
it (accept stage, which carries `imageUrl` instead). Both views share
PetDraftBaseSchema so the rules live in one place.
"""

from typing import Any, Dict

from marshmallow import Schema, fields, validate, pre_load, ValidationError, RAISE

CARE_LINE_PREFIX = "- "
MIN_CARE_LINES = 8
MAX_CARE_LINES = 14
MIN_PRICE_CENTS = 5000
MAX_PRICE_CENTS = 150000


def care_instruction_lines(value: str):
    """Non-blank lines of a care-instruction block."""
    return [line for line in value.split("\n") if line.strip()]


def validate_care_line_count(value: str):
    count = len(care_instruction_lines(value))
    if count < MIN_CARE_LINES or count > MAX_CARE_LINES:
        raise ValidationError(
            f"Care instructions must have {MIN_CARE_LINES} to {MAX_CARE_LINES} lines (got {count})."
        )


def validate_care_line_prefix(value: str):
    bad = [line for line in care_instruction_lines(value) if not line.strip().startswith(CARE_LINE_PREFIX)]
    if bad:
        raise ValidationError(f'Each care instruction line must start with "{CARE_LINE_PREFIX}".')


class CareInstructionsField(fields.Field):
    """Accepts one string or a list of strings; a list is joined with newlines."""
    default_error_messages = {
        "invalid": "Care instructions must be a string or a list of strings."
    }

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            return "\n".join(value)
        raise self.make_error("invalid")

    def _serialize(self, value, attr, obj, **kwargs):
        return value


class PetDraftBaseSchema(Schema):
    """Fields every draft has, whatever stage it is in."""
    class Meta:
        unknown = RAISE

    name = fields.Str(required=True, validate=validate.Length(min=2, max=40))
    species = fields.Str(required=True, validate=validate.Length(min=2, max=30))
    traits = fields.List(
        fields.Str(validate=validate.Length(min=2, max=20)),
        required=True,
        validate=validate.Length(min=3, max=6),
    )
    description = fields.Str(required=True, validate=validate.Length(min=80, max=1200))
    care_instructions = CareInstructionsField(
        required=True,
        data_key="careInstructions",
        validate=[validate_care_line_count, validate_care_line_prefix],
    )
    price_cents = fields.Integer(
        required=True,
        strict=True,
        data_key="priceCents",
        validate=validate.Range(min=MIN_PRICE_CENTS, max=MAX_PRICE_CENTS),
    )


class GeneratedDraftSchema(PetDraftBaseSchema):
    """Draft as returned by a text provider."""
    image_prompt = fields.Str(required=True, data_key="imagePrompt", validate=validate.Length(min=20, max=800))


class AcceptDraftSchema(PetDraftBaseSchema):
    """
    POST /api/generate/accept
    The reviewed draft plus its final image. imagePrompt is only needed for
    generation, so it is dropped before validation.
    """
    image_url = fields.Str(required=True, data_key="imageUrl", validate=validate.Length(min=1))

    @pre_load
    def strip_image_prompt(self, data, **kwargs):
        if isinstance(data, dict) and "imagePrompt" in data:
            data = {key: value for key, value in data.items() if key != "imagePrompt"}
        return data


DRAFT_SCHEMAS = {
    "generation": GeneratedDraftSchema,
    "accept": AcceptDraftSchema,
}


def validate_draft(candidate: Any, stage: str = "generation") -> Dict[str, Any]:
    """
    Validates an untyped draft for the given stage ("generation" or "accept").
    Returns the normalized draft (snake_case keys, care instructions joined to one
    string) or raises ValidationError listing every violated constraint.
    """
    schema_cls = DRAFT_SCHEMAS.get(stage)
    if schema_cls is None:
        raise ValueError(f"Unknown draft stage: {stage!r}")
    return schema_cls().load(candidate)
