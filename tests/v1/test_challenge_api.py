# tests/v1/test_challenge_api.py
"""Tests for the challenge endpoint and informational routes."""

from __future__ import annotations

import base64

from fastapi import status
from fastapi.testclient import TestClient

from clipgate.main import create_app
from clipgate.services.container import build_services
from tests.conftest import StubClassifier, make_settings


def test_challenge_returns_image_and_token(client: TestClient) -> None:
    response = client.get("/api/v1/challenge", params={"theme": "dark"})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert base64.b64decode(body["image"]).startswith(b"\x89PNG")
    assert not body["image"].startswith("data:")
    assert len(body["token"]) == 64


def test_each_challenge_is_fresh(client: TestClient) -> None:
    tokens = {client.get("/api/v1/challenge").json()["token"] for _ in range(3)}
    assert len(tokens) == 3


def test_unknown_theme_is_rejected(client: TestClient) -> None:
    response = client.get("/api/v1/challenge", params={"theme": "neon"})
    assert response.status_code == 422


def test_challenge_without_secret_is_server_error() -> None:
    settings = make_settings(captcha_salt=None)
    app = create_app(settings, services=build_services(settings, classifier=StubClassifier()))
    with TestClient(app) as client:
        response = client.get("/api/v1/challenge")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Captcha is not configured."}


def test_health_and_root(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}
    root = client.get("/").json()
    assert root["name"] == "Clipgate API"
    assert root["docs"] == "/docs"
