import logging

import pytest

from clientportal.core.config import Settings, validate_secrets
from clientportal.core.errors import InsecureConfigurationError


def _settings(**overrides) -> Settings:
    values = {"secret_key": "x" * 40, "admin_password": "s3nha-forte-do-painel"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_default_secrets_rejected_outside_development():
    config = _settings(environment="production", secret_key="changeme", admin_password="admin123")

    with pytest.raises(InsecureConfigurationError) as exc:
        validate_secrets(config)

    assert "secret_key" in str(exc.value)
    assert "admin_password" in str(exc.value)


def test_default_secrets_only_warn_in_development(caplog):
    config = _settings(environment="development", admin_password="admin123")

    with caplog.at_level(logging.WARNING):
        validate_secrets(config)

    assert "admin_password" in caplog.text


def test_strong_secrets_pass_in_production():
    validate_secrets(_settings(environment="production"))


def test_public_app_url_is_trimmed():
    assert _settings(public_app_url=" https://cliente.test/ ").resolved_public_app_url() == "https://cliente.test"
