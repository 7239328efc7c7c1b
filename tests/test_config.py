from dataclasses import replace

from fastapi.testclient import TestClient

from invoiceflow import config
from invoiceflow.main import app
from tests.conftest import PREFIX


def test_load_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("API_PREFIX", "billing/")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("ENFORCE_FORWARD_TRANSITIONS", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    loaded = config.load_settings()

    assert loaded.api_prefix == "/billing"
    assert loaded.cors_origins == ["https://a.example", "https://b.example"]
    assert loaded.enforce_forward_transitions is True
    assert loaded.log_level == "DEBUG"


def test_default_prefix(monkeypatch) -> None:
    monkeypatch.delenv("API_PREFIX", raising=False)
    assert config.load_settings().api_prefix == "/make-server-ec5ebf11"


def test_strict_mode_rejects_skipped_stages(client: TestClient, invoice_body: dict) -> None:
    strict = replace(config.settings, enforce_forward_transitions=True)
    app.dependency_overrides[config.get_settings] = lambda: strict

    invoice_id = client.post(f"{PREFIX}/invoices", json=invoice_body).json()["invoice"]["id"]
    url = f"{PREFIX}/invoices/{invoice_id}/transition"

    response = client.post(url, json={"status": "completed", "actor": "Bob"})
    assert response.status_code == 409

    response = client.post(url, json={"status": "sent", "actor": "Bob"})
    assert response.status_code == 200
    assert response.json()["invoice"]["sender"] == "Bob"
