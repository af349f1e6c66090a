"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration class."""
    
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'
    
    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
    
    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day;50 per hour"
    
    # QR attendance tokens
    QR_SIGNING_KEY = os.getenv('QR_SIGNING_KEY') or SECRET_KEY
    QR_CODE_VALIDITY_SECONDS = 180
    QR_TOKEN_FRESHNESS_SECONDS = 300
    QR_TOKEN_HASH_LENGTH = 16
    QR_TOKEN_CLOCK_SKEW_SECONDS = 30
    
    # Sessions
    MAX_SESSION_DURATION_MINUTES = 6 * 60
    
    # Login protection
    MAX_LOGIN_ATTEMPTS = 5
    ACCOUNT_LOCK_MINUTES = 15
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
