# src/resto_pulse/api/v1/endpoints/suggestions.py
"""Suggestion board endpoints for the Resto Pulse API."""

from fastapi import APIRouter, Query, status

from resto_pulse.schemas.suggestion import (
    SuggestionCreate,
    SuggestionDeletedResponse,
    SuggestionEnvelope,
    SuggestionListResponse,
    SuggestionPageResponse,
    SuggestionResponse,
    UserStatsResponse,
)
from resto_pulse.services.suggestions import SuggestionDraft, SuggestionPage

from ..dependencies import IdentityDep, SessionDep, SuggestionServiceDep, unwrap

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


def _draft(payload: SuggestionCreate) -> SuggestionDraft:
    return SuggestionDraft(**payload.model_dump())


def _page_response(page: SuggestionPage) -> SuggestionPageResponse:
    return SuggestionPageResponse(
        suggestions=[SuggestionResponse.from_view(view) for view in page.items],
        page=page.page,
        page_size=page.page_size,
        total=page.total,
        total_pages=page.total_pages,
    )


@router.post("", response_model=SuggestionEnvelope, status_code=status.HTTP_201_CREATED)
async def add_suggestion(
    payload: SuggestionCreate,
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> SuggestionEnvelope:
    view = unwrap(suggestions.add_suggestion(db, identity, _draft(payload)))
    return SuggestionEnvelope(suggestion=SuggestionResponse.from_view(view))


@router.get("", response_model=SuggestionPageResponse)
async def list_suggestions(
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=50),
    type: str | None = Query(None, description="'suggestion', 'complaint' or 'all'"),
) -> SuggestionPageResponse:
    """Newest suggestions first, with the caller's reaction on each."""
    result = suggestions.list_suggestions(
        db, identity, page=page, page_size=page_size, type_filter=type
    )
    return _page_response(unwrap(result))


@router.get("/popular", response_model=SuggestionListResponse)
async def popular_suggestions(
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
    limit: int = Query(10, ge=1, le=50),
) -> SuggestionListResponse:
    views = unwrap(suggestions.popular_suggestions(db, identity, limit))
    return SuggestionListResponse(
        suggestions=[SuggestionResponse.from_view(view) for view in views]
    )


@router.get("/mine", response_model=SuggestionListResponse)
async def my_suggestions(
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> SuggestionListResponse:
    views = unwrap(suggestions.user_suggestions(db, identity))
    return SuggestionListResponse(
        suggestions=[SuggestionResponse.from_view(view) for view in views]
    )


@router.get("/stats", response_model=UserStatsResponse)
async def my_stats(
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> UserStatsResponse:
    stats = unwrap(suggestions.user_stats(db, identity))
    return UserStatsResponse(**vars(stats))


@router.get("/restaurant/{restaurant_name}", response_model=SuggestionPageResponse)
async def suggestions_for_restaurant(
    restaurant_name: str,
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=50),
) -> SuggestionPageResponse:
    result = suggestions.suggestions_for_restaurant(
        db, restaurant_name, identity, page=page, page_size=page_size
    )
    return _page_response(unwrap(result))


@router.put("/{suggestion_id}", response_model=SuggestionEnvelope)
async def update_suggestion(
    suggestion_id: str,
    payload: SuggestionCreate,
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> SuggestionEnvelope:
    """Replace a suggestion; only its author may do so."""
    view = unwrap(suggestions.update_suggestion(db, suggestion_id, identity, _draft(payload)))
    return SuggestionEnvelope(suggestion=SuggestionResponse.from_view(view))


@router.delete("/{suggestion_id}", response_model=SuggestionDeletedResponse)
async def delete_suggestion(
    suggestion_id: str,
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> SuggestionDeletedResponse:
    deleted = unwrap(suggestions.delete_suggestion(db, suggestion_id, identity))
    return SuggestionDeletedResponse(suggestion_id=deleted)
