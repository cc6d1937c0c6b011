# petsynth/__init__.py

# =====================================================================================
# 1. Environment (.env is loaded before any configuration class is read)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import logging
from typing import Optional
from flask import Flask, jsonify, send_from_directory
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

# - configuration
from petsynth.core.config import config_by_name, DEFAULT_JWT_SECRET
from petsynth.core.security import init_jwt
from petsynth.core.rate_limit import RateLimiter
# (the seed import binds the 'petsynth.db' subpackage, so 'db' is imported after it)
from petsynth.db.seed import register_commands
from petsynth.models import db

# - API blueprints
from petsynth.api.auth.routes import auth_bp
from petsynth.api.pets.routes import pets_bp
from petsynth.api.generate.routes import generate_bp
from petsynth.api.store.routes import store_bp

# - services
from petsynth.services.storage_service import LocalImageStorage
from petsynth.services.text_generation_service import TextGenerationService
from petsynth.services.image_generation_service import ImageGenerationService
from petsynth.api.auth.services import AuthService
from petsynth.api.pets.services import PetService
from petsynth.api.store.services import StoreService
from petsynth.api.generate.services import GenerationService

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def create_app(config_name: Optional[str] = None, overrides: Optional[dict] = None):
    """
    Flask application factory.

    :param config_name: key of config_by_name; defaults to FLASK_ENV, then 'development'
    :param overrides: settings applied on top of the configuration class (tests)
    """
    # =====================================================================================
    # 3. App and configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    if config_name not in config_by_name:
        raise ValueError(f"Unknown configuration '{config_name}'. Expected one of: {', '.join(config_by_name)}")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if overrides:
        app.config.update(overrides)
    app.json.ensure_ascii = False

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'), format=LOG_FORMAT)

    if app.config['JWT_SECRET_KEY'] == DEFAULT_JWT_SECRET and not app.config.get('TESTING'):
        logging.warning("JWT_SECRET_KEY is not set; using the development default. Set it before deploying.")

    # =====================================================================================
    # 4. Extensions
    # =====================================================================================
    init_jwt(app)
    db.init_app(app)
    with app.app_context():
        db.create_all()

    # =====================================================================================
    # 5. Services, stored in 'app.services'
    # =====================================================================================
    app.services = {}

    # 5-1. shared services other services depend on
    rate_limiter = RateLimiter()
    rate_limiter.init_app(app)
    app.services['rate_limiter'] = rate_limiter

    storage = LocalImageStorage()
    storage.init_app(app)
    app.services['storage'] = storage

    text_generation = TextGenerationService()
    text_generation.init_app(app)
    app.services['text_generation'] = text_generation

    image_generation = ImageGenerationService()
    image_generation.init_app(app, storage=storage)
    app.services['image_generation'] = image_generation

    _log_provider_credentials(app)

    # 5-2. domain services
    app.services['auth'] = AuthService()
    app.services['pets'] = PetService()
    app.services['store'] = StoreService(pet_service=app.services['pets'])
    app.services['generation'] = GenerationService(
        text_generation_service=text_generation,
        image_generation_service=image_generation,
        pet_service=app.services['pets'],
        store_service=app.services['store'],
    )

    # =====================================================================================
    # 6. Blueprints, static images, CLI
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(pets_bp, url_prefix='/api/pets')
    app.register_blueprint(generate_bp, url_prefix='/api/generate')
    app.register_blueprint(store_bp, url_prefix='/api/store')

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({"ok": True}), 200

    @app.route(f"{app.config['PUBLIC_IMAGE_PREFIX']}/<path:filename>", methods=['GET'])
    def pet_image(filename):
        return send_from_directory(app.config['IMAGE_ASSET_DIR'], filename)

    register_commands(app)

    # =====================================================================================
    # 7. Global error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        # unknown routes, wrong methods, malformed bodies
        error_code = (err.name or "HTTP_ERROR").upper().replace(' ', '_')
        return jsonify({"error_code": error_code, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred on the server."}
        return jsonify(response), 500

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app


def _log_provider_credentials(app: Flask):
    """Logs which provider credentials are present. Values are never logged."""
    present = {
        name: bool(app.config.get(name))
        for name in ('OPENAI_API_KEY', 'ANTHROPIC_API_KEY', 'FAL_API_KEY', 'STABILITY_API_KEY', 'REPLICATE_API_TOKEN')
    }
    logging.info(
        f"Providers: text={app.config.get('AI_TEXT_PROVIDER')}, image={app.config.get('IMAGE_PROVIDER')}, "
        f"credentials present={present}"
    )
