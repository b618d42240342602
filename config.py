"""Configuration module for the register application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Database (products, transactions, transaction items)
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///register.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Pricebook loaded by `flask load-pricebook` when no path is given
    PRICEBOOK_PATH = os.getenv('PRICEBOOK_PATH', 'pricebook.tsv')

    # Discount API (timeouts in seconds)
    DISCOUNT_API_BASE_URL = os.getenv('DISCOUNT_API_BASE_URL', 'http://localhost:8080')
    DISCOUNT_API_CONNECT_TIMEOUT = float(os.getenv('DISCOUNT_API_CONNECT_TIMEOUT', '5'))
    DISCOUNT_API_READ_TIMEOUT = float(os.getenv('DISCOUNT_API_READ_TIMEOUT', '10'))
    DISCOUNT_API_ENABLED = _env_bool('DISCOUNT_API_ENABLED', 'true')

    # Virtual journal (local log + remote collector)
    JOURNAL_FILE = os.getenv('JOURNAL_FILE', 'register_journal.txt')
    JOURNAL_SERVER_HOST = os.getenv('JOURNAL_SERVER_HOST', 'localhost')
    JOURNAL_SERVER_PORT = int(os.getenv('JOURNAL_SERVER_PORT', '9090'))
    JOURNAL_CONNECT_TIMEOUT = float(os.getenv('JOURNAL_CONNECT_TIMEOUT', '5'))
    JOURNAL_READ_TIMEOUT = float(os.getenv('JOURNAL_READ_TIMEOUT', '300'))
    JOURNAL_RETRY_ATTEMPTS = int(os.getenv('JOURNAL_RETRY_ATTEMPTS', '3'))
    JOURNAL_RETRY_DELAY = float(os.getenv('JOURNAL_RETRY_DELAY', '2'))
    JOURNAL_ENABLED = _env_bool('JOURNAL_ENABLED', 'true')
    REGISTER_ID = os.getenv('REGISTER_ID', 'REG-001')


class TestConfig(Config):
    """Configuration used by the test suite (in-memory DB, no network)."""

    TESTING = True
    DATABASE_URL = 'sqlite://'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = False
    DISCOUNT_API_ENABLED = False
    JOURNAL_ENABLED = False
    JOURNAL_RETRY_DELAY = 0
