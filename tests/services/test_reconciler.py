# tests/services/test_reconciler.py
"""Tests for the optimistic client cache and its reconcile step."""

import asyncio

import pytest

from resto_pulse.client import Outcome, RatingView, ReactionView, ReconciliationStore
from resto_pulse.client.reconciler import optimistic_rating, optimistic_reaction
from resto_pulse.core.reactions import ReactionType
from resto_pulse.services.results import ErrorKind, ServiceResult


class FakeApi:
    """Scriptable stand-in for the HTTP client."""

    def __init__(self) -> None:
        self.rating_results: list[ServiceResult] = []
        self.reaction_results: list[ServiceResult] = []
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple] = []

    async def _respond(self, queue):
        if self.gate is not None:
            await self.gate.wait()
        return queue.pop(0)

    async def submit_rating(self, restaurant_id, rating):
        self.calls.append(("rating", restaurant_id, rating))
        return await self._respond(self.rating_results)

    async def toggle_reaction(self, suggestion_id, reaction_type):
        self.calls.append(("reaction", suggestion_id, reaction_type))
        return await self._respond(self.reaction_results)


def _rating_body(average, count, rating):
    return ServiceResult.ok(
        {"rating": rating, "summary": {"average_rating": average, "rating_count": count}}
    )


def _reaction_body(likes, dislikes, user_reaction):
    return ServiceResult.ok(
        {"likes": likes, "dislikes": dislikes, "user_reaction": user_reaction}
    )


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def store(api) -> ReconciliationStore:
    return ReconciliationStore(api)


def test_optimistic_rating_first_and_repeat() -> None:
    view = RatingView(42, 3.0, 1)

    first = optimistic_rating(view, 4.5)
    again = optimistic_rating(first, 5.0)

    assert (first.average_rating, first.rating_count) == (3.75, 2)
    assert (again.average_rating, again.rating_count) == (4.0, 2)


def test_optimistic_reaction_follows_transition_table() -> None:
    view = ReactionView("p1", 1, 1, ReactionType.LIKE)

    flipped = optimistic_reaction(view, ReactionType.DISLIKE)
    cleared = optimistic_reaction(view, ReactionType.LIKE)

    assert (flipped.like_count, flipped.dislike_count) == (0, 2)
    assert (cleared.like_count, cleared.user_reaction) == (0, None)


async def test_matching_server_response_is_confirmed(store, api) -> None:
    store.seed_rating(RatingView(42, 3.0, 1))
    api.rating_results.append(_rating_body(3.75, 2, 4.5))

    result = await store.rate(42, 4.5)

    assert result.outcome is Outcome.CONFIRMED
    assert store.rating(42) == RatingView(42, 3.75, 2, 4.5)


async def test_server_value_replaces_optimistic_guess(store, api) -> None:
    store.seed_reaction(ReactionView("p1", 0, 0))
    api.reaction_results.append(_reaction_body(5, 2, "like"))

    result = await store.react("p1", "like")

    assert result.outcome is Outcome.CORRECTED
    assert store.reaction("p1") == ReactionView("p1", 5, 2, ReactionType.LIKE)


async def test_failure_restores_snapshot(store, api) -> None:
    seeded = RatingView(42, 3.0, 1)
    store.seed_rating(seeded)
    api.rating_results.append(ServiceResult.fail(ErrorKind.TRANSIENT, "offline"))

    result = await store.rate(42, 5.0)

    assert result.outcome is Outcome.ROLLED_BACK
    assert result.kind is ErrorKind.TRANSIENT
    assert store.rating(42) == seeded


async def test_malformed_response_is_rolled_back(store, api) -> None:
    store.seed_reaction(ReactionView("p1", 1, 0))
    api.reaction_results.append(ServiceResult.ok({"unexpected": True}))

    result = await store.react("p1", "dislike")

    assert result.outcome is Outcome.ROLLED_BACK
    assert store.reaction("p1") == ReactionView("p1", 1, 0)


async def test_second_action_while_pending_is_busy(store, api) -> None:
    api.gate = asyncio.Event()
    api.reaction_results.append(_reaction_body(1, 0, "like"))

    first = asyncio.create_task(store.react("p1", "like"))
    await asyncio.sleep(0)
    assert store.is_pending("reaction", "p1")
    assert store.reaction("p1") == ReactionView("p1", 1, 0, ReactionType.LIKE)

    busy = await store.react("p1", "like")
    api.gate.set()
    done = await first

    assert busy.outcome is Outcome.BUSY
    assert done.outcome is Outcome.CONFIRMED
    assert len(api.calls) == 1
    assert not store.is_pending("reaction", "p1")


async def test_results_after_close_are_dropped(store, api) -> None:
    store.seed_rating(RatingView(42, 3.0, 1))
    api.gate = asyncio.Event()
    api.rating_results.append(_rating_body(4.0, 2, 5.0))

    pending = asyncio.create_task(store.rate(42, 5.0))
    await asyncio.sleep(0)
    store.close()
    api.gate.set()
    result = await pending

    assert result.outcome is Outcome.DROPPED
    assert (await store.rate(42, 1.0)).outcome is Outcome.DROPPED


async def test_cancelled_action_restores_snapshot(store, api) -> None:
    seeded = ReactionView("p1", 2, 0)
    store.seed_reaction(seeded)
    api.gate = asyncio.Event()
    api.reaction_results.append(_reaction_body(3, 0, "like"))

    task = asyncio.create_task(store.react("p1", "like"))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.reaction("p1") == seeded
    assert not store.is_pending("reaction", "p1")
