"""Development configuration."""
import os

from .base import BaseConfig

class DevelopmentConfig(BaseConfig):
    """Development configuration class."""
    
    DEBUG = True
    TESTING = False
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or \
        'sqlite:///attendance_dev.db'
    SQLALCHEMY_ECHO = False
    
    # Longer QR lifetime while testing scanners by hand
    QR_CODE_VALIDITY_SECONDS = 300
    
    LOG_LEVEL = 'DEBUG'
