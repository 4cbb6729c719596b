# tests/v1/test_reviews.py
"""Tests for review endpoints."""

from fastapi import status

PHOTO = "https://res.cloudinary.com/demo/image/upload/v1/resto-pulse/dish.jpg"


def _post_review(client, headers, restaurant_id=42, **fields):
    body = {"restaurant_id": restaurant_id, "comment": "Lovely karahi", **fields}
    return client.post("/api/v1/reviews", json=body, headers=headers)


def test_add_review(client, restaurant, device_headers) -> None:
    """Test creating a review."""
    response = _post_review(client, device_headers("u1"), reviewer_name="Ayesha", images=[PHOTO])
    assert response.status_code == status.HTTP_201_CREATED
    review = response.json()["review"]
    assert review["reviewer_name"] == "Ayesha"
    assert review["comment"] == "Lovely karahi"
    assert review["images"] == [PHOTO]
    assert "identity_token" not in review


def test_add_review_strips_markup(client, restaurant, device_headers) -> None:
    """Test that HTML is removed from review text."""
    response = _post_review(client, device_headers("u1"), comment="<b>Crispy</b> naan")
    assert response.json()["review"]["comment"] == "Crispy naan"


def test_second_review_overwrites(client, restaurant, device_headers) -> None:
    """Test that reviewing twice keeps one review per device."""
    first = _post_review(client, device_headers("u1")).json()["review"]
    second = _post_review(client, device_headers("u1"), comment="Even better").json()["review"]

    assert second["id"] == first["id"]
    listing = client.get("/api/v1/reviews/42").json()
    assert listing["count"] == 1
    assert listing["reviews"][0]["comment"] == "Even better"


def test_daily_review_limit(client, make_restaurant, device_headers) -> None:
    """Test that the sixth new review of the day is refused."""
    for restaurant_id in range(1, 7):
        make_restaurant(id=restaurant_id, name=f"Place {restaurant_id}")
    for restaurant_id in range(1, 6):
        assert _post_review(client, device_headers("u1"), restaurant_id).status_code == (
            status.HTTP_201_CREATED
        )

    response = _post_review(client, device_headers("u1"), 6)
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json()["kind"] == "quota_exceeded"

    mine = client.get("/api/v1/reviews/1/mine", headers=device_headers("u1")).json()
    assert mine["reviews_today"] == 5
    assert mine["daily_limit"] == 5


def test_review_with_insecure_image(client, restaurant, device_headers) -> None:
    """Test that non-HTTPS image URLs are rejected."""
    response = _post_review(client, device_headers("u1"), images=["http://example.com/a.jpg"])
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_review(client, restaurant, device_headers) -> None:
    """Test editing an existing review."""
    _post_review(client, device_headers("u1"))
    response = client.put(
        "/api/v1/reviews/42",
        json={"comment": "Changed my mind"},
        headers=device_headers("u1"),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["review"]["comment"] == "Changed my mind"


def test_update_missing_review(client, restaurant, device_headers) -> None:
    """Test editing when the caller has no review."""
    response = client.put(
        "/api/v1/reviews/42",
        json={"comment": "Hello"},
        headers=device_headers("u1"),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_own_review(client, restaurant, device_headers) -> None:
    """Test deleting the caller's own review."""
    review = _post_review(client, device_headers("u1")).json()["review"]

    response = client.delete("/api/v1/reviews/42", headers=device_headers("u1"))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["review_id"] == review["id"]
    assert client.get("/api/v1/reviews/42").json()["count"] == 0


def test_delete_other_users_review(client, restaurant, device_headers) -> None:
    """Test that deleting someone else's review is forbidden."""
    review = _post_review(client, device_headers("author")).json()["review"]

    response = client.delete("/api/v1/reviews/42", headers=device_headers("intruder"))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["kind"] == "ownership"

    response = client.delete(f"/api/v1/reviews/by-id/{review['id']}", headers=device_headers("intruder"))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_review_by_id(client, restaurant, device_headers) -> None:
    """Test that the author can delete their review by id."""
    review = _post_review(client, device_headers("author")).json()["review"]

    response = client.delete(f"/api/v1/reviews/by-id/{review['id']}", headers=device_headers("author"))
    assert response.status_code == status.HTTP_200_OK


def test_my_review(client, restaurant, device_headers) -> None:
    """Test reading the caller's review status."""
    response = client.get("/api/v1/reviews/42/mine", headers=device_headers("u1"))
    assert response.json()["has_reviewed"] is False
    assert response.json()["review"] is None

    _post_review(client, device_headers("u1"))

    response = client.get("/api/v1/reviews/42/mine", headers=device_headers("u1"))
    assert response.json()["has_reviewed"] is True
    assert response.json()["reviews_today"] == 1


def test_review_stats(client, restaurant, device_headers) -> None:
    """Test review statistics combine reviews and ratings."""
    client.post("/api/v1/ratings", json={"restaurant_id": 42, "rating": 5}, headers=device_headers("u1"))
    client.post("/api/v1/ratings", json={"restaurant_id": 42, "rating": 3}, headers=device_headers("u2"))
    _post_review(client, device_headers("u1"))

    data = client.get("/api/v1/reviews/42/stats").json()
    assert data["total_reviews"] == 1
    assert data["average_rating"] == 4.0
    assert data["rating_distribution"]["5"] == 1
    assert data["rating_distribution"]["3"] == 1


def test_recent_reviews(client, make_restaurant, device_headers) -> None:
    """Test the recent reviews feed includes restaurant names."""
    make_restaurant(id=1, name="Savour Foods")
    _post_review(client, device_headers("u1"), restaurant_id=1)

    data = client.get("/api/v1/reviews/recent").json()
    assert data["reviews"][0]["restaurant_name"] == "Savour Foods"
