import os
from datetime import timedelta

from dotenv import load_dotenv
load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, default).lower() == 'true'


class Config:
    """Base configuration class"""
    # Storage
    UPLOAD_DIR = os.getenv('UPLOAD_DIR', os.path.join(os.getcwd(), 'uploads'))
    PORT = int(os.getenv('PORT', '3000'))
    MAX_FILE_SIZE = int(os.getenv('MAX_FILE_SIZE', '1024'))  # MB

    # Access gate
    UPLOAD_SECRET = os.getenv('UPLOAD_SECRET', '')
    SECRET_MIN_LENGTH = int(os.getenv('SECRET_MIN_LENGTH', '4'))
    SECRET_MAX_LENGTH = int(os.getenv('SECRET_MAX_LENGTH', '10'))

    # Credential cookie issued after a successful secret check
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', '')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('CREDENTIAL_TTL_HOURS', '24')))
    JWT_TOKEN_LOCATION = ['cookies', 'headers']
    JWT_ACCESS_COOKIE_NAME = 'upload_credential'
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_COOKIE_SECURE = False

    # Idle session reaper
    ENABLE_REAPER = _env_bool('ENABLE_REAPER', 'true')
    SESSION_IDLE_TIMEOUT = int(os.getenv('SESSION_IDLE_TIMEOUT', '3600'))
    REAPER_INTERVAL_SECONDS = int(os.getenv('REAPER_INTERVAL_SECONDS', '60'))
    SCHEDULER_API_ENABLED = False
    SCHEDULER_TIMEZONE = 'UTC'

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    ENABLE_REAPER = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length'

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    JWT_COOKIE_SECURE = _env_bool('JWT_COOKIE_SECURE', 'false')

config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
