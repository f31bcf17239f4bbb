"""
Configuration settings for the Forecast Engine
"""

import os


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Forecast Engine"
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///forecast_engine.db'
    )
    # Fix for Render PostgreSQL URLs
    if SQLALCHEMY_DATABASE_URI and SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Rate limiting
    RATELIMIT_DEFAULT = "100 per minute"
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    # Prediction cache refresh
    PREDICTION_JOB_ENABLED = os.environ.get('PREDICTION_JOB_ENABLED', 'false').lower() == 'true'
    PREDICTION_JOB_HOUR = int(os.environ.get('PREDICTION_JOB_HOUR', 4))

    # Engine heuristics (currency units)
    MAX_VARIABLE_CATEGORIES = int(os.environ.get('MAX_VARIABLE_CATEGORIES', 50))
    RESERVE_SAFE_MARGIN = 1000.0
    RESERVE_MIN_MARGIN = 500.0
    TIMING_LOW_BALANCE = 500.0
    CUT_THRESHOLD = 1000.0
    GOAL_INFLATION_WARNING = 1000.0


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///forecast_engine_dev.db'
    )


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    PREDICTION_JOB_ENABLED = os.environ.get('PREDICTION_JOB_ENABLED', 'true').lower() == 'true'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PREDICTION_JOB_ENABLED = False
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
    return config.get(env, config['default'])
