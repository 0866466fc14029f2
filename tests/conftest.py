"""Test environment: in-memory SQLite and cheap bcrypt, set before app modules import."""

import os

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["CORS_ORIGINS"] = "*"
os.environ["RATE_LIMIT_ENABLED"] = "false"
