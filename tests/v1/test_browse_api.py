# tests/v1/test_browse_api.py
"""End-to-end tests for listing, searching and liking videos."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import FakeClock, solved_challenge

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x03" * 128


def _upload(client: TestClient, marker: int, title: str, description: str, tags: str = "") -> dict:
    response = client.post(
        "/api/v1/videos",
        data={"title": title, "description": description, "tags": tags, **solved_challenge()},
        files={"video": ("clip.mp4", VIDEO_BYTES + bytes([marker]), "video/mp4")},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def test_list_is_newest_first(client: TestClient, clock: FakeClock) -> None:
    assert client.get("/api/v1/videos").json() == []
    first = _upload(client, 1, "Harbour", "Boats at dawn")
    clock.advance(60)
    second = _upload(client, 2, "Market", "Stalls at noon")

    listed = client.get("/api/v1/videos")

    assert listed.status_code == status.HTTP_200_OK
    assert [video["id"] for video in listed.json()] == [second["id"], first["id"]]
    assert listed.json()[0] == second


def test_like_by_id_and_fingerprint(client: TestClient) -> None:
    video = _upload(client, 1, "Harbour", "Boats at dawn")

    first = client.post("/api/v1/likes", json={"videoId": video["id"]})
    second = client.post("/api/v1/likes", json={"videoId": video["fingerprint"].upper()})

    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {"likes": 1}
    assert second.json() == {"likes": 2}
    assert client.get(f"/api/v1/videos/{video['id']}").json()["likes"] == 2


def test_like_rejections(client: TestClient) -> None:
    missing = client.post("/api/v1/likes", json={})
    malformed = client.post("/api/v1/likes", json={"videoId": "not-a-video"})
    unknown = client.post("/api/v1/likes", json={"videoId": "65f1c0ffee0123456789abcd"})

    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert missing.json() == {"error": "Missing videoId."}
    assert malformed.status_code == status.HTTP_400_BAD_REQUEST
    assert malformed.json() == {"error": "Invalid videoId format."}
    assert unknown.status_code == status.HTTP_404_NOT_FOUND
    assert unknown.json() == {"error": "Video not found."}


def test_search_matches_words_and_ranks_by_likes(client: TestClient) -> None:
    harbour = _upload(client, 1, "Harbour", "Boats at dawn", tags="sea")
    ferry = _upload(client, 2, "Ferry ride", "Crossing the bay", tags="boats, sea")
    _upload(client, 3, "Market", "Stalls at noon")
    client.post("/api/v1/likes", json={"videoId": ferry["id"]})

    found = client.get("/api/v1/search", params={"query": "SEA boats"})

    assert found.status_code == status.HTTP_200_OK
    assert [video["id"] for video in found.json()] == [ferry["id"], harbour["id"]]
    assert found.json()[0]["likes"] == 1


def test_blank_search_returns_nothing(client: TestClient) -> None:
    _upload(client, 1, "Harbour", "Boats at dawn")

    assert client.get("/api/v1/search").json() == []
    assert client.get("/api/v1/search", params={"query": "   "}).json() == []
    assert client.get("/api/v1/search", params={"query": "(boats"}).json() == []
