# hris_api/config.py
"""Optional config objects for ``create_app("hris_api.config.<Name>")``.

``create_app`` already fills sane defaults from the environment; these
classes only override what differs per deployment.
"""
import os
from datetime import timedelta


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = 4 * 1024 * 1024


class ProductionConfig(Config):
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "8")))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=30)
