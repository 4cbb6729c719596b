# src/resto_pulse/schemas/suggestion.py
"""Suggestion and reaction Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class SuggestionCreate(BaseModel):
    """Schema for posting or replacing a suggestion/complaint."""

    title: str = Field(..., description="Short headline")
    content: str = Field(..., description="Body text")
    type: str = Field("suggestion", description="'suggestion' or 'complaint'")
    restaurant_name: str | None = None
    food_item: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    images: list[str] = Field(default_factory=list, description="HTTPS image URLs")


class SuggestionResponse(BaseModel):
    """Suggestion as seen by the calling visitor."""

    id: str
    title: str
    content: str
    type: str
    restaurant_name: str | None
    food_item: str | None
    user_name: str | None
    images: list[str]
    likes: int
    dislikes: int
    user_reaction: str | None
    can_edit: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_view(cls, view):
        suggestion = view.suggestion
        return cls(
            id=suggestion.id,
            title=suggestion.title,
            content=suggestion.content,
            type=suggestion.type,
            restaurant_name=suggestion.restaurant_name,
            food_item=suggestion.food_item,
            user_name=suggestion.user_name,
            images=list(suggestion.images or []),
            likes=suggestion.likes,
            dislikes=suggestion.dislikes,
            user_reaction=view.user_reaction,
            can_edit=view.can_edit,
            created_at=suggestion.created_at,
            updated_at=suggestion.updated_at,
        )


class SuggestionEnvelope(BaseModel):
    success: bool = True
    suggestion: SuggestionResponse


class SuggestionListResponse(BaseModel):
    success: bool = True
    suggestions: list[SuggestionResponse]


class SuggestionPageResponse(SuggestionListResponse):
    page: int
    page_size: int
    total: int
    total_pages: int


class SuggestionDeletedResponse(BaseModel):
    success: bool = True
    suggestion_id: str


class ReactionToggle(BaseModel):
    """Schema for toggling a like/dislike on a suggestion."""

    suggestion_id: str = Field(..., description="Suggestion being reacted to")
    reaction_type: str = Field(..., description="'like' or 'dislike'")


class ReactionResponse(BaseModel):
    """Durable state after a toggle; clients reconcile against this."""

    success: bool = True
    suggestion_id: str
    user_reaction: str | None
    likes: int
    dislikes: int


class UserStatsResponse(BaseModel):
    success: bool = True
    total_suggestions: int
    total_suggestion_type: int
    total_complaint_type: int
    total_likes: int
    total_dislikes: int
    avg_likes: float
    avg_dislikes: float
