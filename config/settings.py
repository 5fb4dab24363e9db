"""
Configuration settings for the Impact Assessment Platform
"""

import os
from datetime import timedelta
from decimal import Decimal


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Impact Assessment Platform"
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///impact_assessment.db'
    )
    # Fix for Render PostgreSQL URLs
    if SQLALCHEMY_DATABASE_URI and SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Assessment engine
    ASSESSMENT_DEBOUNCE_MS = int(os.environ.get('ASSESSMENT_DEBOUNCE_MS', '500'))
    ASSESSMENT_COOLDOWN = int(os.environ.get('ASSESSMENT_COOLDOWN', '30'))
    ASSESSMENT_COOLDOWN_UNIT = os.environ.get('ASSESSMENT_COOLDOWN_UNIT', 'days')  # days or hours
    ELIGIBILITY_THRESHOLD = Decimal(os.environ.get('ELIGIBILITY_THRESHOLD', '10'))
    QUESTION_BANK_PATH = os.environ.get('QUESTION_BANK_PATH')  # None = built-in questionnaire

    # Remote assessment API (used by the HTTP client)
    ASSESSMENT_API_URL = os.environ.get('ASSESSMENT_API_URL', 'http://localhost:5101')
    ASSESSMENT_API_TIMEOUT = float(os.environ.get('ASSESSMENT_API_TIMEOUT', '10'))

    # Rate limiting
    RATELIMIT_DEFAULT = "100 per minute"
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    # Session
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///impact_assessment_dev.db'
    )


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False

    SECRET_KEY = os.environ.get('SECRET_KEY')


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


# Config mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get config based on environment"""
    env = os.environ.get('FLASK_ENV', 'development')
    config_class = config.get(env, config['default'])
    # Ensure secret key is set in production
    if config_class is ProductionConfig and not config_class.SECRET_KEY:
        raise ValueError("SECRET_KEY must be set in production")
    return config_class
