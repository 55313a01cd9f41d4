"""
Configuration settings for different environments.
"""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Session configuration
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # CSRF Protection for cookie sessions; bearer-token requests skip it
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_SSL_STRICT = False

    # Supabase
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_KEY = os.getenv('SUPABASE_ANON_KEY')

    # Timezone used for users who have not picked one yet
    DEFAULT_TIMEZONE = os.getenv('STREAKZ_DEFAULT_TZ', 'UTC')

    # Bearer tokens for API clients
    JWT_EXPIRES = timedelta(hours=int(os.getenv('JWT_EXPIRES_HOURS', '24')))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    CORS_ORIGINS = []


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SECRET_KEY = Config.SECRET_KEY or 'dev-only-secret-key'
    SESSION_COOKIE_SECURE = False  # Allow HTTP in development
    SESSION_COOKIE_NAME = 'session'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')
    CORS_ORIGINS = [
        'http://localhost:5000',
        'http://127.0.0.1:5000',
        'http://localhost:3000',  # separate frontend dev server
    ]


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True  # Require HTTPS
    SESSION_COOKIE_NAME = '__Host-session'
    WTF_CSRF_SSL_STRICT = True
    CORS_ORIGINS = [os.getenv('FRONTEND_URL')] if os.getenv('FRONTEND_URL') else []


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_ENABLED = False
    DEFAULT_TIMEZONE = 'UTC'
    LOG_LEVEL = 'DEBUG'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
