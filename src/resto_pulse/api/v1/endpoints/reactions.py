# src/resto_pulse/api/v1/endpoints/reactions.py
"""Reaction toggle endpoint for the Resto Pulse API."""

from fastapi import APIRouter

from resto_pulse.schemas.suggestion import ReactionResponse, ReactionToggle

from ..dependencies import IdentityDep, SessionDep, SuggestionServiceDep, unwrap

router = APIRouter(prefix="/reactions", tags=["reactions"])


@router.post("/toggle", response_model=ReactionResponse)
async def toggle_reaction(
    payload: ReactionToggle,
    db: SessionDep,
    identity: IdentityDep,
    suggestions: SuggestionServiceDep,
) -> ReactionResponse:
    """Toggle a like/dislike and return the caller's reaction with recounted totals."""
    outcome = unwrap(
        suggestions.toggle_reaction(db, payload.suggestion_id, identity, payload.reaction_type)
    )
    return ReactionResponse(
        suggestion_id=outcome.suggestion_id,
        user_reaction=outcome.applied_type.value if outcome.applied_type else None,
        likes=outcome.like_count,
        dislikes=outcome.dislike_count,
    )
