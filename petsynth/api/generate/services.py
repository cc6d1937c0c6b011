# petsynth/api/generate/services.py
import logging
import time
from typing import Any, Dict

from marshmallow import ValidationError

from petsynth.api.pets.services import PetService
from petsynth.api.store.services import StoreService
from petsynth.api.generate.schemas import UsageSchema
from petsynth.core.exceptions import DraftValidationError
from petsynth.models import db, Pet
from petsynth.schemas.pet_schema import GeneratedDraftSchema, validate_draft
from petsynth.services.generation_log_service import save_generation_record
from petsynth.services.image_generation_service import ImageGenerationService
from petsynth.services.text_generation_service import TextGenerationService


class GenerationService:
    """
    The draft pipeline: text draft -> validation -> image -> telemetry, and the
    accept step that turns a reviewed draft into a published pet.
    """

    def __init__(self, text_generation_service: TextGenerationService,
                 image_generation_service: ImageGenerationService,
                 pet_service: PetService, store_service: StoreService):
        self.text_generation = text_generation_service
        self.image_generation = image_generation_service
        self.pet_service = pet_service
        self.store_service = store_service

    def generate_draft(self, user_id: str, prompt: str) -> Dict[str, Any]:
        """
        Returns {draft, model, usage?, imageWarning?}.
        Raises GenerationError when the text provider gives up and
        DraftValidationError when its output is structurally invalid.
        """
        started = time.perf_counter()
        result = self.text_generation.generate_pet_draft(prompt)
        latency_ms = int((time.perf_counter() - started) * 1000)

        try:
            draft = validate_draft(result.draft, stage="generation")
        except ValidationError as err:
            logging.error(f"Generated draft failed validation (model: {result.model}): {err.messages}")
            raise DraftValidationError("Generated draft validation failed", err.messages)

        image = self.image_generation.create_image(draft['image_prompt'], name=draft['name'])

        save_generation_record(user_id, prompt, result.model, latency_ms, result.usage)

        response: Dict[str, Any] = {
            "draft": {**GeneratedDraftSchema().dump(draft), "imageUrl": image.image_url},
            "model": result.model,
        }
        if result.usage is not None:
            response["usage"] = UsageSchema().dump(result.usage)
        if image.warning:
            response["imageWarning"] = image.warning
        return response

    def accept_draft(self, user_id: str, payload: Any) -> Pet:
        """
        Validates a reviewed draft (raises ValidationError), then stores the pet and
        the owner's collection entry in one commit.
        """
        draft = validate_draft(payload, stage="accept")
        try:
            pet = self.pet_service.create_published_pet(user_id, draft, commit=False)
            db.session.flush()
            self.store_service.add_to_collection(user_id, pet.id, commit=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logging.info(f"Draft accepted as pet {pet.id} by user {user_id}")
        return pet
