# petsynth/api/pets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app

from petsynth.core.exceptions import NotFoundError
from .schemas import PetResponseSchema, PetListResponseSchema

pets_bp = Blueprint('pets_bp', __name__)


def _int_arg(name: str):
    """Query-string integer; anything unparsable counts as absent."""
    value = request.args.get(name)
    try:
        return int(value) if value not in (None, '') else None
    except ValueError:
        return None


@pets_bp.route('', methods=['GET'])
def list_pets():
    """Public catalog with optional search (q) and pagination (limit, offset)."""
    pet_service = current_app.services['pets']
    try:
        items, total, limit, offset = pet_service.list_pets(
            q=request.args.get('q'),
            limit=_int_arg('limit'),
            offset=_int_arg('offset'),
        )
        payload = {
            "items": items,
            "meta": {"total": total, "limit": limit, "offset": offset, "count": len(items)},
        }
        return jsonify(PetListResponseSchema().dump(payload)), 200
    except Exception as e:
        logging.error(f"Pet list API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to fetch pets"}), 500


@pets_bp.route('/<string:pet_id>', methods=['GET'])
def get_pet(pet_id: str):
    pet_service = current_app.services['pets']
    try:
        pet = pet_service.get_visible_pet(pet_id)
        return jsonify(PetResponseSchema().dump(pet)), 200
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Get pet API error (pet_id: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "Failed to fetch pet"}), 500
