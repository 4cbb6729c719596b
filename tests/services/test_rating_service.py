# tests/services/test_rating_service.py
"""Tests for rating upserts and the restaurant rollup."""

import random

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from resto_pulse.models import Rating, RestaurantStats
from resto_pulse.services import ratings
from resto_pulse.services.aggregates import read_rating_summary, verify_rating_summary
from resto_pulse.services.ratings import RatingService, parse_rating_value
from resto_pulse.services.restaurants import restaurant_lock
from resto_pulse.services.results import ErrorKind, ValidationError


@pytest.fixture()
def service() -> RatingService:
    return RatingService()


def test_second_submission_overwrites_first(db_session, restaurant, service) -> None:
    """Two submissions by the same identity leave exactly one row with the latest value."""
    assert service.submit_rating(db_session, 42, "u1", 3).success
    assert service.submit_rating(db_session, 42, "u1", 4).success

    rows = db_session.scalars(
        select(Rating).where(Rating.restaurant_id == 42, Rating.identity_token == "u1")
    ).all()
    assert len(rows) == 1
    assert rows[0].value == 4.0


def test_end_to_end_average_sequence(db_session, restaurant, service) -> None:
    first = service.submit_rating(db_session, 42, "u1", 4.5)
    assert (first.value.summary.average_rating, first.value.summary.rating_count) == (4.5, 1)

    second = service.submit_rating(db_session, 42, "u2", 3.0)
    assert (second.value.summary.average_rating, second.value.summary.rating_count) == (3.75, 2)

    third = service.submit_rating(db_session, 42, "u1", 5.0)
    assert (third.value.summary.average_rating, third.value.summary.rating_count) == (4.0, 2)

    stored = read_rating_summary(db_session, 42)
    assert stored.average_rating == 4.0
    assert stored.rating_count == 2


def test_rollup_matches_rows_after_random_sequence(db_session, restaurant, service) -> None:
    rng = random.Random(7)
    identities = [f"device_{i}" for i in range(6)]
    for _ in range(40):
        value = rng.choice([1, 1.5, 2, 2.5, 3, 3.5, 4, 4.5, 5])
        assert service.submit_rating(db_session, 42, rng.choice(identities), value).success
        assert verify_rating_summary(db_session, 42)

    average, count = db_session.execute(
        select(func.avg(Rating.value), func.count(Rating.id)).where(Rating.restaurant_id == 42)
    ).one()
    summary = read_rating_summary(db_session, 42)
    assert summary.rating_count == count
    assert summary.average_rating == pytest.approx(float(average))


@pytest.mark.parametrize("value", [0, 0.5, 5.5, "abc", None, float("nan"), True])
def test_invalid_ratings_are_rejected_without_writing(db_session, restaurant, service, value) -> None:
    result = service.submit_rating(db_session, 42, "u1", value)

    assert not result.success
    assert result.kind is ErrorKind.VALIDATION
    assert db_session.scalar(select(func.count(Rating.id))) == 0


def test_rating_rounds_to_half_steps() -> None:
    assert parse_rating_value(4.26, 1, 5) == 4.5
    assert parse_rating_value(4.24, 1, 5) == 4.0
    assert parse_rating_value("3", 1, 5) == 3.0
    with pytest.raises(ValidationError):
        parse_rating_value(6, 1, 5)


def test_rating_unknown_restaurant_is_not_found(db_session, service) -> None:
    result = service.submit_rating(db_session, 999, "u1", 4)

    assert result.kind is ErrorKind.NOT_FOUND


def test_rating_inactive_restaurant_is_not_found(db_session, make_restaurant, service) -> None:
    make_restaurant(id=7, is_active=False)

    assert service.submit_rating(db_session, 7, "u1", 4).kind is ErrorKind.NOT_FOUND


def test_blank_identity_is_rejected(db_session, restaurant, service) -> None:
    assert service.submit_rating(db_session, 42, "   ", 4).kind is ErrorKind.VALIDATION


def test_user_rating_lookup(db_session, restaurant, service) -> None:
    assert service.get_user_rating(db_session, 42, "u1").value is None
    assert not service.has_user_rated(db_session, 42, "u1")

    service.submit_rating(db_session, 42, "u1", 2.5)

    assert service.get_user_rating(db_session, 42, "u1").value == 2.5
    assert service.has_user_rated(db_session, 42, "u1")


def test_delete_rating_refreshes_rollup(db_session, restaurant, service) -> None:
    service.submit_rating(db_session, 42, "u1", 5)
    service.submit_rating(db_session, 42, "u2", 3)

    summary = service.delete_rating(db_session, 42, "u1").value

    assert summary.rating_count == 1
    assert summary.average_rating == 3.0
    assert service.delete_rating(db_session, 42, "u1").kind is ErrorKind.NOT_FOUND


def test_distribution_counts_whole_stars(db_session, restaurant, service) -> None:
    service.submit_rating(db_session, 42, "u1", 4.5)
    service.submit_rating(db_session, 42, "u2", 4)
    service.submit_rating(db_session, 42, "u3", 1)

    distribution = service.get_distribution(db_session, 42).value

    assert distribution == {1: 1, 2: 0, 3: 0, 4: 2, 5: 0}


def test_display_average_rounds_to_one_decimal(db_session, restaurant, service) -> None:
    for identity, value in (("u1", 5), ("u2", 4), ("u3", 4)):
        service.submit_rating(db_session, 42, identity, value)

    summary = service.get_summary(db_session, 42).value

    assert summary.display_average == 4.3


def test_restaurant_lock_selects_for_update() -> None:
    sql = str(restaurant_lock(42).compile(dialect=postgresql.dialect()))

    assert "FROM restaurant" in sql
    assert sql.rstrip().endswith("FOR UPDATE")


def test_rating_writes_lock_the_restaurant_row(db_session, restaurant, service, mocker) -> None:
    require_spy = mocker.spy(ratings, "require_active_restaurant")
    lock_spy = mocker.spy(ratings, "restaurant_lock")

    service.submit_rating(db_session, 42, "u1", 4)
    service.delete_rating(db_session, 42, "u1")

    require_spy.assert_called_once_with(db_session, 42, for_update=True)
    lock_spy.assert_called_once_with(42)


def test_interleaved_writes_recompute_from_rows(db_session, restaurant, service) -> None:
    """Each write rebuilds the rollup from rows, so a stale stored rollup is overwritten."""
    service.submit_rating(db_session, 42, "u1", 5)
    stats = db_session.get(RestaurantStats, 42)
    stats.rating_count = 1
    stats.average_rating = 1.0
    db_session.add(Rating(restaurant_id=42, identity_token="u2", value=2.0))
    db_session.commit()
    assert not verify_rating_summary(db_session, 42)

    result = service.submit_rating(db_session, 42, "u3", 2)

    assert (result.value.summary.average_rating, result.value.summary.rating_count) == (3.0, 3)
    assert verify_rating_summary(db_session, 42)
