# petsynth/core/config.py

import os
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

DEFAULT_JWT_SECRET = 'default-secret-change-in-production'


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    """Settings shared by every environment. Values are read from the environment (.env)."""
    # Signing key for session tokens. JWT_SECRET is accepted as an alias.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or os.getenv('JWT_SECRET') or DEFAULT_JWT_SECRET
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=86400)
    # Tokens are read from the Authorization header first, then from the page-flow cookie.
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_ACCESS_COOKIE_NAME = 'auth_token'
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_SECURE = False
    JWT_SESSION_COOKIE = False

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///' + os.path.join(basedir, '..', 'pets.db'))
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Providers: anthropic | openai | mock  /  openai | fal | stability | replicate | none
    AI_TEXT_PROVIDER = os.getenv('AI_TEXT_PROVIDER', 'mock')
    IMAGE_PROVIDER = os.getenv('IMAGE_PROVIDER', 'none')
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
    FAL_API_KEY = os.getenv('FAL_API_KEY')
    STABILITY_API_KEY = os.getenv('STABILITY_API_KEY')
    REPLICATE_API_TOKEN = os.getenv('REPLICATE_API_TOKEN')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
    ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-3-5-sonnet-20241022')
    PROVIDER_TIMEOUT_SECONDS = _int_env('PROVIDER_TIMEOUT_SECONDS', 25)

    # Generated images are written here and served under PUBLIC_IMAGE_PREFIX.
    IMAGE_ASSET_DIR = os.getenv('IMAGE_ASSET_DIR', os.path.join(basedir, 'static', 'images', 'pets'))
    PUBLIC_IMAGE_PREFIX = '/images/pets'

    RATE_LIMIT_CAPACITY = _int_env('RATE_LIMIT_CAPACITY', 10)
    RATE_LIMIT_REFILL_PER_MINUTE = _int_env('RATE_LIMIT_REFILL_PER_MINUTE', 10)
    RATE_LIMIT_MAX_BUCKETS = _int_env('RATE_LIMIT_MAX_BUCKETS', 10000)

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Local development: debug mode, file-backed SQLite."""
    DEBUG = True


class TestingConfig(Config):
    """Test runs: in-memory database, offline providers."""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length'
    AI_TEXT_PROVIDER = 'mock'
    IMAGE_PROVIDER = 'none'


class ProductionConfig(Config):
    DEBUG = False
    JWT_COOKIE_SECURE = True


# Maps FLASK_ENV values to configuration classes; create_app picks one of these.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
