# tests/v1/test_reactions.py
"""Tests for the reaction toggle endpoint."""

import pytest
from fastapi import status


def _toggle(client, headers, reaction_type, suggestion_id="p1"):
    return client.post(
        "/api/v1/reactions/toggle",
        json={"suggestion_id": suggestion_id, "reaction_type": reaction_type},
        headers=headers,
    )


def test_like_then_dislike_then_unlike(client, suggestion, device_headers) -> None:
    """Test the counters across a sequence of toggles by two visitors."""
    first = _toggle(client, device_headers("u1"), "like")
    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {
        "success": True,
        "suggestion_id": "p1",
        "user_reaction": "like",
        "likes": 1,
        "dislikes": 0,
    }

    second = _toggle(client, device_headers("u2"), "dislike").json()
    assert (second["likes"], second["dislikes"]) == (1, 1)

    third = _toggle(client, device_headers("u1"), "like").json()
    assert (third["likes"], third["dislikes"]) == (0, 1)
    assert third["user_reaction"] is None


def test_flip_reaction(client, suggestion, device_headers) -> None:
    """Test that the opposite reaction moves the vote across."""
    _toggle(client, device_headers("u1"), "like")
    data = _toggle(client, device_headers("u1"), "dislike").json()

    assert (data["likes"], data["dislikes"]) == (0, 1)
    assert data["user_reaction"] == "dislike"


def test_reaction_visible_in_listing(client, suggestion, device_headers) -> None:
    """Test that listings report the caller's own reaction."""
    _toggle(client, device_headers("u1"), "dislike")

    mine = client.get("/api/v1/suggestions", headers=device_headers("u1")).json()
    theirs = client.get("/api/v1/suggestions", headers=device_headers("u2")).json()

    assert mine["suggestions"][0]["user_reaction"] == "dislike"
    assert theirs["suggestions"][0]["user_reaction"] is None
    assert theirs["suggestions"][0]["dislikes"] == 1


@pytest.mark.parametrize("reaction_type", ["love", "", "upvote"])
def test_invalid_reaction_type(client, suggestion, device_headers, reaction_type) -> None:
    """Test that unknown reaction types are rejected."""
    response = _toggle(client, device_headers("u1"), reaction_type)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["kind"] == "validation"


def test_reaction_on_missing_suggestion(client, device_headers) -> None:
    """Test reacting to a suggestion that does not exist."""
    response = _toggle(client, device_headers("u1"), "like", suggestion_id="missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND
