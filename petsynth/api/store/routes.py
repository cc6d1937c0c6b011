# petsynth/api/store/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from petsynth.api.pets.schemas import PetSummarySchema
from petsynth.core.exceptions import NotFoundError
from .schemas import AddToStoreSchema

store_bp = Blueprint('store_bp', __name__)


@store_bp.route('', methods=['GET'])
@jwt_required()
def list_store():
    """The caller's collection."""
    user_id = get_jwt_identity()
    store_service = current_app.services['store']
    try:
        pets = store_service.list_collection(user_id)
        return jsonify(PetSummarySchema(many=True).dump(pets)), 200
    except Exception as e:
        logging.error(f"Store list API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to fetch store"}), 500


@store_bp.route('', methods=['POST'])
@jwt_required()
def add_to_store():
    """Adds a pet; adding the same pet again is a no-op answered with 200."""
    user_id = get_jwt_identity()
    store_service = current_app.services['store']
    try:
        data = AddToStoreSchema().load(request.get_json(silent=True) or {})
        pet_id = data['pet_id']
        created = store_service.add_to_collection(user_id, pet_id)
        if created:
            return jsonify({"message": "Pet added to store", "petId": pet_id}), 201
        return jsonify({"message": "Pet already in store", "petId": pet_id}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "petId is required", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Store add API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Failed to add pet to store"}), 500


@store_bp.route('/<string:pet_id>', methods=['DELETE'])
@jwt_required()
def remove_from_store(pet_id: str):
    user_id = get_jwt_identity()
    store_service = current_app.services['store']
    try:
        if not store_service.remove_from_collection(user_id, pet_id):
            return jsonify({"error_code": "NOT_FOUND", "message": "Pet not in store"}), 404
        return jsonify({"message": "Pet removed from store"}), 200
    except Exception as e:
        logging.error(f"Store remove API error (user: {user_id}, pet: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Failed to remove pet from store"}), 500
