# petsynth/api/auth/routes.py

import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from petsynth.api.auth.schemas import CredentialsSchema, AuthResponseSchema, UserSchema
from petsynth.core.exceptions import AuthenticationError, ConflictError
from petsynth.core.security import issue_token, set_auth_cookie, current_identity

auth_bp = Blueprint('auth_bp', __name__)


def _auth_response(user, status_code: int):
    token = issue_token(user.id, user.username)
    response = jsonify(AuthResponseSchema().dump({"token": token, "user": user.to_public_dict()}))
    response.status_code = status_code
    # page-flow pages authenticate with the same token via cookie
    return set_auth_cookie(response, token)


@auth_bp.route('/register', methods=['POST'])
def register():
    """Creates an account and signs the caller in."""
    auth_service = current_app.services['auth']
    try:
        data = CredentialsSchema().load(request.get_json(silent=True) or {})
        user = auth_service.create_user(data['username'], data['password'])
        return _auth_response(user, 201)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ConflictError as e:
        return jsonify({"error_code": "USERNAME_TAKEN", "message": str(e)}), 409
    except Exception as e:
        logging.error(f"Registration failed: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Registration failed"}), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    auth_service = current_app.services['auth']
    try:
        data = CredentialsSchema().load(request.get_json(silent=True) or {})
        user = auth_service.authenticate(data['username'], data['password'])
        return _auth_response(user, 200)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except AuthenticationError as e:
        return jsonify({"error_code": "INVALID_CREDENTIALS", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"Login failed: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Login failed"}), 500


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    """Identity carried by the caller's token."""
    identity = current_identity()
    return jsonify(UserSchema().dump({"id": identity.subject_id, "username": identity.username})), 200
