"""Optimistic client cache reconciled against server aggregates.

Each user action is applied to the local cache immediately, then the
durable call is awaited. The server response decides the final state:

- the optimistic state matched the server: CONFIRMED
- the server disagreed: the server value replaces it (CORRECTED)
- the call failed: the pre-action snapshot is restored (ROLLED_BACK)

Only one action per target may be in flight (BUSY otherwise), and results
arriving after :meth:`ReconciliationStore.close` are dropped.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from resto_pulse.core.reactions import ReactionType, parse_reaction, transition
from resto_pulse.services.results import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

V = TypeVar("V")


class Outcome(str, Enum):
    CONFIRMED = "confirmed"
    CORRECTED = "corrected"
    ROLLED_BACK = "rolled_back"
    BUSY = "busy"
    DROPPED = "dropped"


@dataclass(frozen=True)
class RatingView:
    """Cached rating aggregate for one restaurant plus the visitor's own rating."""

    restaurant_id: int
    average_rating: float
    rating_count: int
    user_rating: float | None = None

    def matches(self, other: RatingView) -> bool:
        return (
            self.rating_count == other.rating_count
            and self.user_rating == other.user_rating
            and math.isclose(self.average_rating, other.average_rating, abs_tol=1e-6)
        )


@dataclass(frozen=True)
class ReactionView:
    """Cached counters for one suggestion plus the visitor's own reaction."""

    suggestion_id: str
    like_count: int
    dislike_count: int
    user_reaction: ReactionType | None = None

    def matches(self, other: ReactionView) -> bool:
        return self == other


@dataclass(frozen=True)
class ReconcileResult(Generic[V]):
    outcome: Outcome
    view: V | None
    error: str | None = None
    kind: ErrorKind | None = None


class ApiClient(Protocol):
    async def submit_rating(
        self, restaurant_id: int, rating: float
    ) -> ServiceResult[dict[str, Any]]: ...

    async def toggle_reaction(
        self, suggestion_id: str, reaction_type: str
    ) -> ServiceResult[dict[str, Any]]: ...


def optimistic_rating(view: RatingView, rating: float) -> RatingView:
    """Predict the aggregate after the visitor rates ``rating``."""
    total = view.average_rating * view.rating_count
    if view.user_rating is None:
        count = view.rating_count + 1
        total += rating
    else:
        count = max(view.rating_count, 1)
        total += rating - view.user_rating
    return replace(view, average_rating=total / count, rating_count=count, user_rating=rating)


def optimistic_reaction(view: ReactionView, requested: ReactionType) -> ReactionView:
    """Predict the counters after the visitor sends ``requested``."""
    step = transition(view.user_reaction, requested)
    return replace(
        view,
        like_count=max(0, view.like_count + step.like_delta),
        dislike_count=max(0, view.dislike_count + step.dislike_delta),
        user_reaction=step.next_state,
    )


def _rating_from_server(restaurant_id: int, body: dict[str, Any]) -> RatingView:
    summary = body["summary"]
    return RatingView(
        restaurant_id=restaurant_id,
        average_rating=float(summary["average_rating"]),
        rating_count=int(summary["rating_count"]),
        user_rating=float(body["rating"]),
    )


def _reaction_from_server(suggestion_id: str, body: dict[str, Any]) -> ReactionView:
    reaction = body.get("user_reaction")
    return ReactionView(
        suggestion_id=suggestion_id,
        like_count=int(body["likes"]),
        dislike_count=int(body["dislikes"]),
        user_reaction=ReactionType(reaction) if reaction else None,
    )


class ReconciliationStore:
    """Local cache, pending set and reconcile step for one UI session."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self._views: dict[tuple[str, Hashable], Any] = {}
        self._pending: set[tuple[str, Hashable]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop applying results; in-flight calls finish but are ignored."""
        self._closed = True

    def seed_rating(self, view: RatingView) -> None:
        self._views[("rating", view.restaurant_id)] = view

    def seed_reaction(self, view: ReactionView) -> None:
        self._views[("reaction", view.suggestion_id)] = view

    def rating(self, restaurant_id: int) -> RatingView | None:
        return self._views.get(("rating", restaurant_id))

    def reaction(self, suggestion_id: str) -> ReactionView | None:
        return self._views.get(("reaction", suggestion_id))

    def is_pending(self, kind: str, target: Hashable) -> bool:
        return (kind, target) in self._pending

    async def rate(self, restaurant_id: int, rating: float) -> ReconcileResult[RatingView]:
        before = self.rating(restaurant_id) or RatingView(restaurant_id, 0.0, 0)
        return await self._apply(
            ("rating", restaurant_id),
            before,
            optimistic_rating(before, rating),
            lambda: self.client.submit_rating(restaurant_id, rating),
            lambda body: _rating_from_server(restaurant_id, body),
        )

    async def react(
        self, suggestion_id: str, reaction_type: ReactionType | str
    ) -> ReconcileResult[ReactionView]:
        requested = parse_reaction(reaction_type)
        before = self.reaction(suggestion_id) or ReactionView(suggestion_id, 0, 0)
        return await self._apply(
            ("reaction", suggestion_id),
            before,
            optimistic_reaction(before, requested),
            lambda: self.client.toggle_reaction(suggestion_id, requested.value),
            lambda body: _reaction_from_server(suggestion_id, body),
        )

    async def _apply(
        self,
        key: tuple[str, Hashable],
        before: Any,
        optimistic: Any,
        call: Callable[[], Awaitable[ServiceResult[dict[str, Any]]]],
        to_view: Callable[[dict[str, Any]], Any],
    ) -> ReconcileResult[Any]:
        if self._closed:
            return ReconcileResult(Outcome.DROPPED, None)
        if key in self._pending:
            logger.debug("Action on %s ignored, previous one still pending", key)
            return ReconcileResult(Outcome.BUSY, self._views.get(key))

        previous = self._views.get(key)
        self._pending.add(key)
        self._views[key] = optimistic
        try:
            result = await call()
        except asyncio.CancelledError:
            if not self._closed:
                self._restore(key, previous)
            raise
        finally:
            self._pending.discard(key)

        if self._closed:
            logger.debug("Result for %s dropped after close", key)
            return ReconcileResult(Outcome.DROPPED, None)

        if not result.success or result.value is None:
            self._restore(key, previous)
            logger.info("Rolled back %s: %s", key, result.error)
            return ReconcileResult(
                Outcome.ROLLED_BACK,
                self._views.get(key, before),
                error=result.error,
                kind=result.kind or ErrorKind.TRANSIENT,
            )

        try:
            server = to_view(result.value)
        except (KeyError, TypeError, ValueError) as exc:
            self._restore(key, previous)
            logger.warning("Malformed response for %s: %s", key, exc)
            return ReconcileResult(
                Outcome.ROLLED_BACK,
                self._views.get(key, before),
                error="Unexpected server response",
                kind=ErrorKind.TRANSIENT,
            )

        self._views[key] = server
        if server.matches(optimistic):
            return ReconcileResult(Outcome.CONFIRMED, server)
        logger.info("Corrected %s from server", key)
        return ReconcileResult(Outcome.CORRECTED, server)

    def _restore(self, key: tuple[str, Hashable], previous: Any) -> None:
        if previous is None:
            self._views.pop(key, None)
        else:
            self._views[key] = previous
