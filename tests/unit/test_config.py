"""Tests for settings validation and Firestore client bootstrap."""

import json

import pytest
from pydantic import ValidationError

from averzo.core.config import Settings
from averzo.infrastructure.firebase.client import create_firestore_client, resolve_tenant_id


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.firestore_drop_rewritten_constraints is False
    assert settings.openai_key_value() is None
    assert settings.flows_rate_limit == "30/minute"


def test_blank_openai_key_is_none() -> None:
    assert Settings(_env_file=None, openai_api_key="").openai_key_value() is None
    assert Settings(_env_file=None, openai_api_key="sk-x").openai_key_value() == "sk-x"


@pytest.mark.parametrize(
    "overrides",
    [
        {"firestore_poll_interval_seconds": 0},
        {"telemetry_sample_rate": 1.5},
        {"telemetry_exporter": "jaeger"},
    ],
)
def test_invalid_values_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_no_credentials_gives_no_client() -> None:
    settings = Settings(_env_file=None)
    assert create_firestore_client(settings) is None
    assert resolve_tenant_id(None, settings) is None


def test_malformed_key_gives_no_client(caplog) -> None:
    settings = Settings(_env_file=None, firebase_service_account_key="{not json")
    assert create_firestore_client(settings) is None
    assert "Firebase initialization failed" in caplog.text


def test_missing_key_file_gives_no_client(tmp_path) -> None:
    settings = Settings(_env_file=None, firebase_service_account_path=str(tmp_path / "nope.json"))
    assert create_firestore_client(settings) is None


def test_key_without_project_gives_no_client() -> None:
    settings = Settings(_env_file=None, firebase_service_account_key=json.dumps({"type": "x"}))
    assert create_firestore_client(settings) is None


def test_explicit_project_is_tenant() -> None:
    settings = Settings(_env_file=None, firebase_project_id="proj1")
    assert resolve_tenant_id(None, settings) == "proj1"
