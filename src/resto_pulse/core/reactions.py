"""Like/dislike transition table shared by the server and the client cache."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ReactionType(str, Enum):
    """Reaction a visitor can leave on a suggestion."""

    LIKE = "like"
    DISLIKE = "dislike"


@dataclass(frozen=True)
class Transition:
    """Result of applying a reaction to the current per-visitor state.

    ``next_state`` is None when the reaction was toggled off. The deltas are
    what the aggregate counters move by if the transition is applied.
    """

    next_state: ReactionType | None
    like_delta: int
    dislike_delta: int


def transition(current: ReactionType | None, requested: ReactionType) -> Transition:
    """Apply ``requested`` to ``current``.

    none --like--> liked, none --dislike--> disliked,
    same reaction again clears it, the opposite reaction flips it.
    """
    if current is None:
        if requested is ReactionType.LIKE:
            return Transition(ReactionType.LIKE, 1, 0)
        return Transition(ReactionType.DISLIKE, 0, 1)

    if current is requested:
        if requested is ReactionType.LIKE:
            return Transition(None, -1, 0)
        return Transition(None, 0, -1)

    if requested is ReactionType.LIKE:
        return Transition(ReactionType.LIKE, 1, -1)
    return Transition(ReactionType.DISLIKE, -1, 1)


def parse_reaction(value: object) -> ReactionType:
    """Coerce user input into a reaction type.

    Raises:
        ValueError: If the value is not ``like`` or ``dislike``.
    """
    if isinstance(value, ReactionType):
        return value
    try:
        return ReactionType(str(value).strip().lower())
    except ValueError as err:
        raise ValueError(f"Unsupported reaction type: {value!r}") from err
