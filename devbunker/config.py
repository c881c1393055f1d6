"""
DevBunker Portal Configuration Module

Configuration settings for the API connection, sessions, grids and
uploads. All sensitive values are loaded from environment variables.
"""

import os
from pathlib import Path


class Config:
    """Base configuration class with default settings."""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Base Directory
    BASE_DIR = Path(__file__).parent.resolve()

    # DevBunker REST API
    API_BASE_URL = os.environ.get('DEVBUNKER_API_URL', 'http://localhost:3000')
    API_TIMEOUT = float(os.environ.get('DEVBUNKER_API_TIMEOUT', 10))

    # Public origin used in share links
    BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5005')

    # Share popup (Messenger needs a Facebook app id)
    FACEBOOK_APP_ID = os.environ.get('FACEBOOK_APP_ID')

    # Server Settings
    PORT = int(os.environ.get('DEVBUNKER_PORT', 5005))
    HOST = os.environ.get('DEVBUNKER_HOST', '0.0.0.0')

    # Grid Settings
    DEFAULT_PER_PAGE = 5
    PER_PAGE_OPTIONS = (5, 10, 20, 50)
    SEARCH_DEBOUNCE_MS = 300

    # Content Settings
    DESCRIPTION_PREVIEW_LENGTH = 150

    # Upload Constraints
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB profile images
    ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}

    # Password Settings
    PASSWORD_MIN_LENGTH = 6

    # Session Settings
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    @classmethod
    def init_app(cls, app):
        """Initialize application with this configuration."""
        if not cls.API_BASE_URL.startswith(('http://', 'https://')):
            app.logger.warning(f"DEVBUNKER_API_URL does not look like a URL: {cls.API_BASE_URL}")


class DevelopmentConfig(Config):
    """Development configuration with debug enabled."""

    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration; the API is mocked in tests."""

    DEBUG = True
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    API_BASE_URL = 'http://api.test'
    BASE_URL = 'http://portal.test'


class ProductionConfig(Config):
    """Production configuration with secure cookies."""

    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True

    @classmethod
    def init_app(cls, app):
        """Initialize production application."""
        Config.init_app(app)

        if cls.SECRET_KEY == 'dev-secret-key-change-in-production':
            app.logger.warning('SECRET_KEY is using the development default')


# Configuration dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """
    Get configuration class by name.

    Args:
        config_name: Configuration name ('development', 'testing', 'production').
                    If None, reads from FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')
    return config.get(config_name, config['default'])
