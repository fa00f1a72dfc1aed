"""
Tests for API configuration.
"""

import pytest
from pydantic import ValidationError

from library_api.config import APIConfig


def test_defaults(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("MONGODB_URI", raising=False)
    config = APIConfig(_env_file=None)

    assert config.port == 3000
    assert config.mongodb_uri == "mongodb://localhost:27017"
    assert config.mongodb_collection == "books"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://db.example:27017/catalog")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    config = APIConfig(_env_file=None)

    assert config.mongodb_uri == "mongodb://db.example:27017/catalog"
    assert config.port == 8080
    assert config.log_level == "DEBUG"


def test_invalid_log_format(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "xml")
    with pytest.raises(ValidationError):
        APIConfig(_env_file=None)
