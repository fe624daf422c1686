# backend/retail_pos/config.py
"""
Application configuration.

Values come from the environment; a `.env` file next to the backend
directory is loaded first when present.
"""
from __future__ import annotations

import os

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, "..", ".env"))


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite file in the working directory unless DATABASE_URL says otherwise
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///retail_pos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SERVER_PORT = int(os.environ.get("SERVER_PORT", 2022))
    CORS_ALLOWED_ORIGINS = _env_list(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
    )

    # Signed bearer tokens
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 12 * 60 * 60))
    BCRYPT_LOG_ROUNDS = int(os.environ.get("BCRYPT_LOG_ROUNDS", 12))
    MIN_PASSWORD_LENGTH = 6

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Printed on every receipt
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "Point of Sale System")
    BUSINESS_ADDRESS = os.environ.get("BUSINESS_ADDRESS", "123 Business Street, City, Country")
    BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "+1-234-567-8900")
    BUSINESS_EMAIL = os.environ.get("BUSINESS_EMAIL", "info@possystem.com")

    TOP_PRODUCTS_LIMIT = int(os.environ.get("TOP_PRODUCTS_LIMIT", 5))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret-key"
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = "WARNING"
