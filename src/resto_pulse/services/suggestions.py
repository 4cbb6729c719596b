"""Community suggestions/complaints and like/dislike reactions on them."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from resto_pulse.core.reactions import ReactionType, parse_reaction, transition
from resto_pulse.core.settings import settings
from resto_pulse.db.time import utcnow
from resto_pulse.db.upsert import upsert
from resto_pulse.models import SUGGESTION_TYPES, Suggestion, SuggestionReaction
from resto_pulse.services.aggregates import recount_reactions
from resto_pulse.services.identity import normalize_identity, require_identity
from resto_pulse.services.results import (
    NotFoundError,
    OwnershipError,
    ServiceResult,
    ValidationError,
    guarded,
    token_prefix,
)
from resto_pulse.services.reviews import sanitize_text, validate_image_urls

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 2000
MAX_SHORT_FIELD_LENGTH = 200


@dataclass
class SuggestionDraft:
    """Fields a visitor submits for a suggestion or complaint."""

    title: str = ""
    content: str = ""
    type: str = "suggestion"
    restaurant_name: str | None = None
    food_item: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SuggestionView:
    """Suggestion as seen by one visitor."""

    suggestion: Suggestion
    user_reaction: str | None
    can_edit: bool


@dataclass(frozen=True)
class SuggestionPage:
    items: list[SuggestionView]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


@dataclass(frozen=True)
class ReactionOutcome:
    """Durable state after a toggle: the caller's reaction and the counters."""

    suggestion_id: str
    applied_type: ReactionType | None
    like_count: int
    dislike_count: int


@dataclass(frozen=True)
class UserStats:
    total_suggestions: int
    total_suggestion_type: int
    total_complaint_type: int
    total_likes: int
    total_dislikes: int
    avg_likes: float
    avg_dislikes: float


def _optional_text(value: str | None, label: str) -> str | None:
    cleaned = sanitize_text(value)
    if len(cleaned) > MAX_SHORT_FIELD_LENGTH:
        raise ValidationError(f"{label} must be at most {MAX_SHORT_FIELD_LENGTH} characters")
    return cleaned or None


class SuggestionService:
    """Suggestions board with per-identity reactions and author-only edits."""

    def __init__(self, page_size: int | None = None) -> None:
        self.page_size = page_size or settings.suggestions_page_size
        self.max_images = settings.max_images_per_post

    def _prepare(self, draft: SuggestionDraft) -> dict[str, object]:
        title = sanitize_text(draft.title)
        content = sanitize_text(draft.content)
        if not title or not content:
            raise ValidationError("Title and content are required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        if len(content) > MAX_CONTENT_LENGTH:
            raise ValidationError(f"Content must be at most {MAX_CONTENT_LENGTH} characters")
        kind = (draft.type or "").strip().lower()
        if kind not in SUGGESTION_TYPES:
            raise ValidationError("Type must be 'suggestion' or 'complaint'")
        email = _optional_text(draft.user_email, "Email")
        if email is not None and "@" not in email:
            raise ValidationError("Email address is not valid")
        return {
            "title": title,
            "content": content,
            "type": kind,
            "restaurant_name": _optional_text(draft.restaurant_name, "Restaurant name"),
            "food_item": _optional_text(draft.food_item, "Food item"),
            "user_name": _optional_text(draft.user_name, "Name"),
            "user_email": email,
            "images": validate_image_urls(draft.images, self.max_images),
        }

    def _owned(self, db: Session, suggestion_id: str, token: str) -> Suggestion:
        suggestion = db.get(Suggestion, suggestion_id)
        if suggestion is None:
            raise NotFoundError("Suggestion not found")
        if suggestion.identity_token != token:
            raise OwnershipError("You can only modify your own suggestions")
        return suggestion

    def _views(
        self, db: Session, suggestions: Sequence[Suggestion], identity: str | None
    ) -> list[SuggestionView]:
        token = normalize_identity(identity)
        reactions: dict[str, str] = {}
        if token and suggestions:
            rows = db.execute(
                select(SuggestionReaction.suggestion_id, SuggestionReaction.reaction_type).where(
                    SuggestionReaction.identity_token == token,
                    SuggestionReaction.suggestion_id.in_([s.id for s in suggestions]),
                )
            ).all()
            reactions = {suggestion_id: reaction for suggestion_id, reaction in rows}
        return [
            SuggestionView(
                suggestion=s,
                user_reaction=reactions.get(s.id),
                can_edit=token is not None and s.identity_token == token,
            )
            for s in suggestions
        ]

    def _page(
        self,
        db: Session,
        identity: str | None,
        page: int,
        page_size: int | None,
        *criteria,
    ) -> SuggestionPage:
        size = page_size or self.page_size
        page = max(1, page)
        total = int(db.scalar(select(func.count(Suggestion.id)).where(*criteria)) or 0)
        suggestions = list(
            db.scalars(
                select(Suggestion)
                .where(*criteria)
                .order_by(Suggestion.created_at.desc(), Suggestion.id)
                .offset((page - 1) * size)
                .limit(size)
            )
        )
        return SuggestionPage(self._views(db, suggestions, identity), page, size, total)

    def add_suggestion(
        self, db: Session, identity: str, draft: SuggestionDraft
    ) -> ServiceResult[SuggestionView]:
        def _add() -> SuggestionView:
            token = require_identity(identity)
            suggestion = Suggestion(identity_token=token, **self._prepare(draft))
            db.add(suggestion)
            db.commit()
            db.refresh(suggestion)
            logger.info(
                "Added %s %s by %s", suggestion.type, suggestion.id, token_prefix(token)
            )
            return SuggestionView(suggestion, None, True)

        return guarded("add_suggestion", db, _add, identity=identity)

    def update_suggestion(
        self, db: Session, suggestion_id: str, identity: str, draft: SuggestionDraft
    ) -> ServiceResult[SuggestionView]:
        """Replace an author's suggestion. Reactions and counters are kept."""

        def _update() -> SuggestionView:
            token = require_identity(identity)
            values = self._prepare(draft)
            suggestion = self._owned(db, suggestion_id, token)
            if not values["images"]:
                values["images"] = list(suggestion.images or [])
            for key, value in values.items():
                setattr(suggestion, key, value)
            db.commit()
            db.refresh(suggestion)
            logger.info("Updated suggestion %s by %s", suggestion_id, token_prefix(token))
            return self._views(db, [suggestion], token)[0]

        return guarded(
            "update_suggestion", db, _update, suggestion_id=suggestion_id, identity=identity
        )

    def delete_suggestion(
        self, db: Session, suggestion_id: str, identity: str | None
    ) -> ServiceResult[str]:
        """Delete a suggestion; ``identity=None`` is an admin removal."""

        def _delete() -> str:
            if identity is None:
                suggestion = db.get(Suggestion, suggestion_id)
                if suggestion is None:
                    raise NotFoundError("Suggestion not found")
            else:
                suggestion = self._owned(db, suggestion_id, require_identity(identity))
            db.delete(suggestion)
            db.commit()
            logger.info("Deleted suggestion %s (admin=%s)", suggestion_id, identity is None)
            return suggestion_id

        return guarded(
            "delete_suggestion", db, _delete, suggestion_id=suggestion_id, identity=identity
        )

    def toggle_reaction(
        self,
        db: Session,
        suggestion_id: str,
        identity: str,
        reaction_type: object,
    ) -> ServiceResult[ReactionOutcome]:
        """Apply a like/dislike toggle and return the recounted totals.

        The suggestion row is locked for the duration of the transaction so
        concurrent toggles on the same suggestion serialize; the counters are
        then recounted from reaction rows rather than adjusted.
        """

        def _toggle() -> ReactionOutcome:
            token = require_identity(identity)
            try:
                requested = parse_reaction(reaction_type)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc

            suggestion = db.execute(
                select(Suggestion)
                .where(Suggestion.id == suggestion_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if suggestion is None:
                raise NotFoundError("Suggestion not found")

            existing = db.get(
                SuggestionReaction, (suggestion_id, token), populate_existing=True
            )
            current = ReactionType(existing.reaction_type) if existing is not None else None
            step = transition(current, requested)

            if step.next_state is None:
                db.delete(existing)
            else:
                now = utcnow()
                upsert(
                    db,
                    SuggestionReaction,
                    {
                        "suggestion_id": suggestion_id,
                        "identity_token": token,
                        "reaction_type": step.next_state.value,
                        "created_at": now,
                        "updated_at": now,
                    },
                    conflict_columns=("suggestion_id", "identity_token"),
                    update_columns=("reaction_type", "updated_at"),
                )

            counts = recount_reactions(db, suggestion)
            db.commit()
            logger.info(
                "Reaction on %s by %s: %s -> %s (likes=%d dislikes=%d)",
                suggestion_id,
                token_prefix(token),
                current.value if current else "none",
                step.next_state.value if step.next_state else "none",
                counts.like_count,
                counts.dislike_count,
            )
            return ReactionOutcome(
                suggestion_id, step.next_state, counts.like_count, counts.dislike_count
            )

        return guarded(
            "toggle_reaction", db, _toggle, suggestion_id=suggestion_id, identity=identity
        )

    def list_suggestions(
        self,
        db: Session,
        identity: str | None = None,
        page: int = 1,
        page_size: int | None = None,
        type_filter: str | None = None,
    ) -> ServiceResult[SuggestionPage]:
        """Newest suggestions first, optionally only one type."""

        def _list() -> SuggestionPage:
            criteria = []
            if type_filter and type_filter != "all":
                if type_filter not in SUGGESTION_TYPES:
                    raise ValidationError("Type must be 'suggestion' or 'complaint'")
                criteria.append(Suggestion.type == type_filter)
            return self._page(db, identity, page, page_size, *criteria)

        return guarded("list_suggestions", db, _list, identity=identity)

    def suggestions_for_restaurant(
        self,
        db: Session,
        restaurant_name: str,
        identity: str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> ServiceResult[SuggestionPage]:
        def _list() -> SuggestionPage:
            name = (restaurant_name or "").strip()
            if not name:
                raise ValidationError("Restaurant name is required")
            return self._page(
                db,
                identity,
                page,
                page_size,
                func.lower(Suggestion.restaurant_name) == name.lower(),
            )

        return guarded("suggestions_for_restaurant", db, _list, identity=identity)

    def popular_suggestions(
        self, db: Session, identity: str | None = None, limit: int = 10
    ) -> ServiceResult[list[SuggestionView]]:
        """Most liked suggestions first."""

        def _popular() -> list[SuggestionView]:
            suggestions = list(
                db.scalars(
                    select(Suggestion)
                    .order_by(Suggestion.likes.desc(), Suggestion.created_at.desc())
                    .limit(limit)
                )
            )
            return self._views(db, suggestions, identity)

        return guarded("popular_suggestions", db, _popular, identity=identity)

    def user_suggestions(
        self, db: Session, identity: str
    ) -> ServiceResult[list[SuggestionView]]:
        def _mine() -> list[SuggestionView]:
            token = require_identity(identity)
            suggestions = list(
                db.scalars(
                    select(Suggestion)
                    .where(Suggestion.identity_token == token)
                    .order_by(Suggestion.created_at.desc())
                )
            )
            return self._views(db, suggestions, token)

        return guarded("user_suggestions", db, _mine, identity=identity)

    def user_stats(self, db: Session, identity: str) -> ServiceResult[UserStats]:
        """Totals over the caller's own suggestions; averages to one decimal."""

        def _stats() -> UserStats:
            token = require_identity(identity)
            rows = db.execute(
                select(Suggestion.type, Suggestion.likes, Suggestion.dislikes).where(
                    Suggestion.identity_token == token
                )
            ).all()
            total = len(rows)
            likes = sum(row.likes for row in rows)
            dislikes = sum(row.dislikes for row in rows)
            return UserStats(
                total_suggestions=total,
                total_suggestion_type=sum(1 for row in rows if row.type == "suggestion"),
                total_complaint_type=sum(1 for row in rows if row.type == "complaint"),
                total_likes=likes,
                total_dislikes=dislikes,
                avg_likes=round(likes / total, 1) if total else 0.0,
                avg_dislikes=round(dislikes / total, 1) if total else 0.0,
            )

        return guarded("user_stats", db, _stats, identity=identity)

    def can_edit(self, db: Session, suggestion_id: str, identity: str | None) -> bool:
        token = normalize_identity(identity)
        if token is None:
            return False
        owner = db.scalar(select(Suggestion.identity_token).where(Suggestion.id == suggestion_id))
        return owner == token
