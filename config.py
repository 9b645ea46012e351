"""Configuration module for the checkout service."""
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
    JSON_SORT_KEYS = False

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'marketplace')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'marketplace')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'marketplace')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '10'))
    DB_MAX_OVERFLOW = int(os.getenv('DB_MAX_OVERFLOW', '20'))

    # Money: every total is quantized to this minor unit
    CURRENCY_MINOR_UNIT = os.getenv('CURRENCY_MINOR_UNIT', '0.01')

    # Checkout unit of work (PostgreSQL only, ignored elsewhere)
    CHECKOUT_STATEMENT_TIMEOUT_MS = int(os.getenv('CHECKOUT_STATEMENT_TIMEOUT_MS', '5000'))

    # Order listing
    ORDERS_DEFAULT_PAGE_SIZE = int(os.getenv('ORDERS_DEFAULT_PAGE_SIZE', '50'))
    ORDERS_MAX_PAGE_SIZE = int(os.getenv('ORDERS_MAX_PAGE_SIZE', '200'))

    # Redis pub/sub for "checkout completed" events
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    NOTIFICATIONS_ENABLED = os.getenv('NOTIFICATIONS_ENABLED', 'true').lower() == 'true'
    NOTIFICATION_CHANNEL = os.getenv('NOTIFICATION_CHANNEL', 'checkout.completed')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite://')
    SQLALCHEMY_ECHO = False
    NOTIFICATIONS_ENABLED = False
    SENTRY_DSN = None
