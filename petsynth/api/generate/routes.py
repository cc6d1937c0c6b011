# petsynth/api/generate/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from petsynth.api.pets.schemas import PetResponseSchema
from petsynth.core.exceptions import DraftValidationError, GenerationError
from petsynth.core.rate_limit import rate_limit
from .schemas import GenerateRequestSchema

generate_bp = Blueprint('generate_bp', __name__)


@generate_bp.route('', methods=['POST'])
@jwt_required()
@rate_limit('generate')
def generate_draft():
    """Generates a pet draft (text + image) from a free-text idea."""
    user_id = get_jwt_identity()
    generation_service = current_app.services['generation']
    try:
        data = GenerateRequestSchema().load(request.get_json(silent=True) or {})
        return jsonify(generation_service.generate_draft(user_id, data['prompt'])), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except DraftValidationError as e:
        return jsonify({"error_code": "DRAFT_VALIDATION_FAILED", "message": str(e), "details": e.details}), 500
    except GenerationError as e:
        logging.error(f"Draft generation failed (user: {user_id}): {e}")
        return jsonify({"error_code": "GENERATION_FAILED", "message": str(e)}), 502
    except Exception as e:
        logging.error(f"Generate API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Generation failed"}), 500


@generate_bp.route('/accept', methods=['POST'])
@jwt_required()
def accept_draft():
    """Publishes a reviewed draft and adds it to the caller's collection."""
    user_id = get_jwt_identity()
    generation_service = current_app.services['generation']
    try:
        pet = generation_service.accept_draft(user_id, request.get_json(silent=True))
        return jsonify(PetResponseSchema().dump(pet)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid draft", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"Accept draft API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Failed to accept draft"}), 500
