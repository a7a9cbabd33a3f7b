import pytest

from config import load_settings


def test_defaults():
    settings = load_settings({"DATABASE_URL": "mongodb://db:27017"})

    assert settings.database_url == "mongodb://db:27017"
    assert settings.database_name == "catalog"
    assert settings.collection == "product_items"
    assert settings.port == 5000
    assert settings.timeout_ms == 30000


def test_numbers_are_parsed_from_strings():
    settings = load_settings({"DATABASE_URL": "mongodb://db", "PORT": "8080", "MONGO_TIMEOUT_MS": "500"})

    assert settings.port == 8080
    assert settings.timeout_ms == 500


def test_missing_database_url():
    with pytest.raises(RuntimeError, match="missing DATABASE_URL"):
        load_settings({})


def test_malformed_value_names_the_variable():
    with pytest.raises(RuntimeError) as excinfo:
        load_settings({"DATABASE_URL": "mongodb://db", "PORT": "abc"})

    message = str(excinfo.value)
    assert "invalid PORT" in message
    assert "missing" not in message


def test_missing_and_malformed_reported_together():
    with pytest.raises(RuntimeError) as excinfo:
        load_settings({"MONGO_TIMEOUT_MS": "soon"})

    message = str(excinfo.value)
    assert "missing DATABASE_URL" in message
    assert "invalid MONGO_TIMEOUT_MS" in message
