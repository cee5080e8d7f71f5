# tests/v1/test_comments_api.py
"""End-to-end tests for the comment endpoints."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import FakeClock, StubClassifier, solved_challenge

VIDEO_ID = "65f1c0ffee0123456789abcd"
FINGERPRINT = "0123456789abcdef0123456789abcdef"


def _payload(content: str = "Great clip!", video_id: str = VIDEO_ID, **overrides) -> dict:
    payload = {"videoId": video_id, "content": content, **solved_challenge()}
    payload.update(overrides)
    return payload


def test_comment_is_created_and_listed(client: TestClient) -> None:
    response = client.post("/api/v1/comments", json=_payload("  First!  "))

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["videoId"] == VIDEO_ID
    assert body["content"] == "First!"
    assert len(body["id"]) == 24
    assert "created" in body

    listed = client.get(f"/api/v1/comments/{VIDEO_ID}")
    assert listed.status_code == status.HTTP_200_OK
    assert listed.json() == [{"id": body["id"], "content": "First!", "created": body["created"]}]


def test_second_comment_within_a_day_is_rate_limited(client: TestClient, clock: FakeClock) -> None:
    assert client.post("/api/v1/comments", json=_payload()).status_code == status.HTTP_201_CREATED

    clock.advance(3600)
    response = client.post("/api/v1/comments", json=_payload("Again"))

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    body = response.json()
    assert body["retryAfterSeconds"] == 82800
    assert body["error"]
    assert response.headers["Retry-After"] == "82800"
    assert len(client.get(f"/api/v1/comments/{VIDEO_ID}").json()) == 1


def test_limit_is_per_video(client: TestClient) -> None:
    assert client.post("/api/v1/comments", json=_payload()).status_code == status.HTTP_201_CREATED
    other = client.post("/api/v1/comments", json=_payload(video_id=FINGERPRINT))
    assert other.status_code == status.HTTP_201_CREATED
    assert other.json()["videoId"] == FINGERPRINT


def test_forwarded_origins_are_limited_separately(client: TestClient) -> None:
    first = client.post(
        "/api/v1/comments", json=_payload(), headers={"X-Forwarded-For": "::ffff:198.51.100.1"}
    )
    second = client.post(
        "/api/v1/comments", json=_payload(), headers={"X-Forwarded-For": "198.51.100.2, 10.0.0.1"}
    )
    repeat = client.post(
        "/api/v1/comments", json=_payload(), headers={"X-Forwarded-For": "198.51.100.1"}
    )

    assert first.status_code == status.HTTP_201_CREATED
    assert second.status_code == status.HTTP_201_CREATED
    # The IPv4-mapped form and the plain form are the same client.
    assert repeat.status_code == status.HTTP_429_TOO_MANY_REQUESTS


def test_validation_errors(client: TestClient) -> None:
    too_long = client.post("/api/v1/comments", json=_payload("x" * 1001))
    assert too_long.status_code == status.HTTP_400_BAD_REQUEST
    assert too_long.json() == {"error": "Comment too long (max 1000 chars)."}

    missing = client.post("/api/v1/comments", json=_payload(""))
    assert missing.json() == {"error": "Missing videoId or comment content."}

    bad_id = client.post("/api/v1/comments", json=_payload(video_id="abc"))
    assert bad_id.status_code == status.HTTP_400_BAD_REQUEST
    assert bad_id.json() == {"error": "Invalid videoId format."}


def test_wrong_captcha(client: TestClient, classifier: StubClassifier) -> None:
    response = client.post("/api/v1/comments", json=_payload(captchaText="WRONG1"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Incorrect captcha answer."}
    assert classifier.calls == []


def test_flagged_comment_does_not_use_allowance(
    client: TestClient, classifier: StubClassifier
) -> None:
    classifier.flagged = True
    flagged = client.post("/api/v1/comments", json=_payload("nasty"))
    assert flagged.status_code == status.HTTP_400_BAD_REQUEST
    assert flagged.json() == {"error": "Your submission violates our community guidelines."}

    classifier.flagged = False
    assert client.post("/api/v1/comments", json=_payload("nice")).status_code == status.HTTP_201_CREATED


def test_moderation_outage_is_server_error(client: TestClient, classifier: StubClassifier) -> None:
    classifier.error = ConnectionError("down")
    response = client.post("/api/v1/comments", json=_payload())
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Service temporarily unavailable. Please try again later."}

    classifier.error = None
    assert client.post("/api/v1/comments", json=_payload()).status_code == status.HTTP_201_CREATED


def test_list_rejects_invalid_id(client: TestClient) -> None:
    response = client.get("/api/v1/comments/not-hex")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Invalid videoId format."}


def test_list_is_empty_for_unknown_video(client: TestClient) -> None:
    assert client.get(f"/api/v1/comments/{FINGERPRINT}").json() == []
