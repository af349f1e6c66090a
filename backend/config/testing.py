"""Testing configuration."""
from datetime import timedelta

from .base import BaseConfig

class TestingConfig(BaseConfig):
    """Testing configuration class."""
    
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    
    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    
    # JWT Configuration
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(hours=1)
    
    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    
    QR_SIGNING_KEY = 'test-qr-signing-key'
    
    LOG_LEVEL = 'WARNING'
