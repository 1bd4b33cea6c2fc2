# -*- coding: utf-8 -*-
"""
Application settings, read from the environment (and a local .env file).
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _database_url():
    url = os.environ.get("DATABASE_URL", "sqlite:///./nonprofit_portal.db")
    # Hosted PostgreSQL still hands out the old scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"
    DATABASE_URL = _database_url()
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

    PER_PAGE = int(os.environ.get("PER_PAGE", 20))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")  # None logs to stderr

    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@nonprofit.org")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin")
    ANONYMOUS_DONOR_EMAIL = os.environ.get("ANONYMOUS_DONOR_EMAIL", "anonymous.donor@nonprofit.org")

    SUPPORTED_LANGUAGES = ("en", "es")


config = Config()
