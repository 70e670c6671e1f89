"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Error tracking (optional)
    SENTRY_DSN = os.getenv('SENTRY_DSN')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT', '3306')
        DB_NAME = os.getenv('DB_NAME', 'linq')
        DB_USER = os.getenv('DB_USER', 'linq')
        DB_PASSWORD = os.getenv('DB_PASSWORD', 'linq')

        DATABASE_URL = (
            f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_size': 10,
        'max_overflow': 20,
    }
    # Create missing tables on startup (dev / tests only)
    DB_CREATE_ALL = os.getenv('DB_CREATE_ALL', 'false').lower() == 'true'

    # Redis (cart and user cart lists)
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    REDIS_SOCKET_TIMEOUT = float(os.getenv('REDIS_SOCKET_TIMEOUT', '3'))
    CART_TTL = int(os.getenv('CART_TTL', '0'))  # seconds, 0 = no expiry
    CACHE_CAS_RETRIES = int(os.getenv('CACHE_CAS_RETRIES', '5'))

    # JSON API
    API_VENDOR = os.getenv('API_VENDOR', 'linq')
    DEFAULT_PAGE_LENGTH = int(os.getenv('DEFAULT_PAGE_LENGTH', '25'))


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    DB_CREATE_ALL = True
    SENTRY_DSN = None
    REDIS_URL = 'redis://localhost:6379/15'
